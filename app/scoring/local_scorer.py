from __future__ import annotations

import re
from typing import Any

from app.schemas.analysis import ComponentScore, Grade, LocalResult, Suggestion

MAX_SCORED_CHARS = 50000

# Overall score weights, summing to 100.
COMPONENT_WEIGHTS = {
    "content_quality": 40,
    "ats_compatibility": 35,
    "format_structure": 15,
    "impact_metrics": 10,
}

TOKEN_RE = re.compile(r"[A-Za-z][A-Za-z0-9+#./-]{1,}")
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(\+?\d[\d\s().-]{7,}\d)")
PROFILE_LINK_RE = re.compile(r"\b(?:linkedin\.com|github\.com|gitlab\.com|behance\.net)/\S+", re.IGNORECASE)

SECTION_PATTERNS = {
    "summary": re.compile(r"^\W*(?:summary|profile|objective|about me|professional summary)\W*$", re.IGNORECASE | re.MULTILINE),
    "experience": re.compile(
        r"^\W*(?:work |professional )?(?:experience|employment(?: history)?|work history)\W*$",
        re.IGNORECASE | re.MULTILINE,
    ),
    "education": re.compile(r"^\W*(?:education|academic background|qualifications)\W*$", re.IGNORECASE | re.MULTILINE),
    "skills": re.compile(
        r"^\W*(?:skills|technical skills|core competencies|technologies|tools)\W*$",
        re.IGNORECASE | re.MULTILINE,
    ),
}

SECTION_EXAMPLES = {
    "summary": "SUMMARY\nBackend engineer with 5 years building payment APIs in Python and AWS.",
    "experience": "EXPERIENCE\nSoftware Engineer | Acme Corp | 2021 - Present\n- Built ...",
    "education": "EDUCATION\nB.S. Computer Science | State University | 2019",
    "skills": "SKILLS\nPython, SQL, Docker, AWS, Git",
}

STRONG_ACTION_VERBS_RE = re.compile(
    r"^(?:built|led|delivered|optimized|designed|implemented|migrated|reduced|increased|"
    r"developed|created|launched|deployed|automated|architected|engineered|configured|"
    r"managed|directed|established|spearheaded|orchestrated|streamlined|scaled|"
    r"integrated|refactored|resolved|achieved|improved|accelerated|consolidated|"
    r"negotiated|mentored|coached|trained|supervised|coordinated|transformed|"
    r"pioneered|executed|maintained|modernized|overhauled|secured|introduced|"
    r"eliminated|expanded|initiated|founded|produced|published|analyzed)\b",
    re.IGNORECASE,
)

# Weak openers and the action-led phrasing used in the rewrite suggestion.
WEAK_OPENERS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(?:was\s+)?responsible\s+for\s+", re.IGNORECASE), "Led "),
    (re.compile(r"^(?:assisted|helped)\s+(?:with|in)\s+", re.IGNORECASE), "Supported "),
    (re.compile(r"^(?:participated|involved)\s+in\s+", re.IGNORECASE), "Contributed to "),
    (re.compile(r"^worked\s+on\s+", re.IGNORECASE), "Delivered "),
    (re.compile(r"^worked\s+with\s+", re.IGNORECASE), "Collaborated with "),
    (re.compile(r"^tasked\s+with\s+", re.IGNORECASE), "Owned "),
    (re.compile(r"^duties\s+included\s+", re.IGNORECASE), "Handled "),
    (re.compile(r"^(?:familiar\s+with|exposure\s+to|knowledge\s+of)\s+", re.IGNORECASE), "Applied "),
)

WEAK_CLAIM_PATTERNS = [
    re.compile(r"\bresponsible\s+for\b", re.IGNORECASE),
    re.compile(r"\b(?:assisted|helped)\s+(?:with|in)\b", re.IGNORECASE),
    re.compile(r"\b(?:participated|involved)\s+in\b", re.IGNORECASE),
    re.compile(r"\b(?:worked on|worked with)\b", re.IGNORECASE),
    re.compile(r"\b(?:tasked with|duties included|handled various)\b", re.IGNORECASE),
    re.compile(r"\b(?:familiar with|exposure to|knowledge of)\b", re.IGNORECASE),
]

QUANTIFIED_RE = re.compile(
    r"\d+(?:[.,]\d+)?\s*%"
    r"|[$€£]\s?\d"
    r"|\b\d+(?:[.,]\d+)?\s*[kmx]?\+?\s*(?:users|customers|clients|people|engineers|projects|hours|days|weeks|"
    r"months|requests|members|countries|stores|teams|reports|transactions|tickets)\b"
    r"|\b(?:increased|reduced|decreased|grew|saved|cut|improved|boosted)\b[^.\n]*\d",
    re.IGNORECASE,
)

SKILL_TERMS = {
    "python", "java", "javascript", "typescript", "sql", "postgresql", "mysql", "mongodb", "redis",
    "react", "angular", "vue", "node.js", "django", "flask", "fastapi", "spring", "go", "rust", "c++",
    "c#", "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "git", "linux", "graphql",
    "rest", "ci/cd", "jenkins", "excel", "tableau", "salesforce", "figma", "jira", "agile", "scrum",
    "pandas", "spark", "kafka", "airflow", "tensorflow", "pytorch", "html", "css", "sap", "seo",
}

BULLET_PREFIXES = ("-", "*", "•", "·", "●", "–", "▪")

MAX_SUGGESTIONS = 8
_PRIORITY_ORDER = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, round(value))))


def grade_for_score(score: int) -> Grade:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def _strip_bullet(line: str) -> str:
    return line.strip().lstrip("".join(BULLET_PREFIXES) + " \t").strip()


def _extract_bullets(lines: list[str]) -> list[str]:
    bullets = [_strip_bullet(line) for line in lines if line.strip().startswith(BULLET_PREFIXES)]
    bullets = [bullet for bullet in bullets if bullet]
    if bullets:
        return bullets
    # No bullet markers: treat sentence-like lines as statements.
    return [line.strip() for line in lines if len(line.split()) >= 6]


def _has_phone(text: str) -> bool:
    # Date ranges like "2018 - 2020" also match the loose pattern; require enough digits.
    return any(len(re.sub(r"\D", "", match)) >= 9 for match in PHONE_RE.findall(text))


def _is_weak(bullet: str) -> bool:
    return any(pattern.search(bullet) for pattern in WEAK_CLAIM_PATTERNS)


def _is_quantified(bullet: str) -> bool:
    return bool(QUANTIFIED_RE.search(bullet))


def _rewrite_weak_bullet(bullet: str) -> str:
    rewritten = bullet
    for pattern, replacement in WEAK_OPENERS:
        if pattern.search(rewritten):
            rewritten = pattern.sub(replacement, rewritten, count=1)
            break
    rewritten = rewritten.rstrip(". ")
    if not _is_quantified(rewritten):
        rewritten += ", resulting in [measurable outcome, e.g. 20% faster or $50K saved]"
    return rewritten + "."


class LocalScorer:
    """Deterministic resume scorer. Pure function of the text; never raises for string input."""

    def score(self, resume_text: Any) -> LocalResult:
        text = resume_text if isinstance(resume_text, str) else ""
        text = text.replace("\r\n", "\n").replace("\r", "\n")[:MAX_SCORED_CHARS]

        lines = [line for line in text.split("\n") if line.strip()]
        words = TOKEN_RE.findall(text)
        if not words:
            return self._empty_result(text)

        bullets = _extract_bullets(lines)
        strong = [bullet for bullet in bullets if STRONG_ACTION_VERBS_RE.match(bullet)]
        weak = [bullet for bullet in bullets if _is_weak(bullet)]
        quantified = [bullet for bullet in bullets if _is_quantified(bullet)]
        sections = {name for name, pattern in SECTION_PATTERNS.items() if pattern.search(text)}
        skills = {token.lower().rstrip(".,") for token in words} & SKILL_TERMS
        has_email = bool(EMAIL_RE.search(text))
        has_phone = _has_phone(text)
        has_link = bool(PROFILE_LINK_RE.search(text))
        long_lines = [line for line in lines if len(line) > 220]

        components = {
            "content_quality": self._content_quality(bullets, strong, weak),
            "ats_compatibility": self._ats_compatibility(sections, skills, has_email, has_phone, has_link),
            "format_structure": self._format_structure(len(words), bullets, long_lines),
            "impact_metrics": self._impact_metrics(bullets, quantified),
        }
        overall = _clamp(
            sum(component.score * component.weight for component in components.values()) / 100
        )

        strengths: list[str] = []
        weaknesses: list[str] = []
        suggestions: list[Suggestion] = []

        if bullets and len(strong) / len(bullets) >= 0.6:
            strengths.append(f"{len(strong)} of {len(bullets)} statements open with a strong action verb.")
        elif bullets:
            weaknesses.append(f"Only {len(strong)} of {len(bullets)} statements open with a strong action verb.")
        else:
            weaknesses.append("No achievement statements or bullet points were found.")

        if quantified and len(quantified) / max(1, len(bullets)) >= 0.4:
            strengths.append(f"{len(quantified)} statements include measurable results.")
        else:
            weaknesses.append("Few statements quantify impact with numbers, percentages or amounts.")

        if len(sections) == len(SECTION_PATTERNS):
            strengths.append("All standard sections are present, which helps ATS parsing.")
        for name in sorted(set(SECTION_PATTERNS) - sections):
            weaknesses.append(f"Missing a clearly labelled {name.title()} section.")
            suggestions.append(
                Suggestion(
                    title=f"Add the {name.title()} section",
                    before="",
                    after=SECTION_EXAMPLES[name],
                    priority="HIGH" if name in {"experience", "skills"} else "MEDIUM",
                )
            )

        if has_email and has_phone:
            strengths.append("Contact details (email and phone) are easy to find.")
        else:
            missing = [label for label, present in (("email", has_email), ("phone", has_phone)) if not present]
            weaknesses.append(f"Contact details are incomplete: missing {' and '.join(missing)}.")
            suggestions.append(
                Suggestion(
                    title="Complete your contact details",
                    before="",
                    after="Jane Doe | jane.doe@email.com | +1 555 123 4567 | linkedin.com/in/janedoe",
                    priority="HIGH",
                )
            )

        if len(skills) >= 5:
            strengths.append(f"Lists {len(skills)} recognizable skills and tools.")
        elif len(skills) < 3:
            weaknesses.append("Few recognizable skills or tools are listed for ATS keyword matching.")

        if weak:
            weaknesses.append(f"{len(weak)} statements use passive phrasing such as 'responsible for'.")
        for bullet in weak[:3]:
            suggestions.append(
                Suggestion(
                    title="Replace passive phrasing with an action verb",
                    before=bullet,
                    after=_rewrite_weak_bullet(bullet),
                    priority="MEDIUM",
                )
            )
        for bullet in [item for item in strong if item not in quantified][:2]:
            suggestions.append(
                Suggestion(
                    title="Quantify the result",
                    before=bullet,
                    after=bullet.rstrip(". ") + ", improving [metric] by [X]%.",
                    priority="MEDIUM",
                )
            )

        word_count = len(words)
        if word_count < 250:
            weaknesses.append(f"The resume is short ({word_count} words); recruiters expect more detail.")
            suggestions.append(
                Suggestion(
                    title="Add more detail to your experience",
                    priority="LOW",
                    after="Aim for 3 to 6 achievement bullets per recent role.",
                )
            )
        elif word_count > 900:
            weaknesses.append(f"The resume is long ({word_count} words); consider trimming older roles.")
            suggestions.append(
                Suggestion(
                    title="Trim to the most relevant content",
                    priority="LOW",
                    after="Keep it to one or two pages focused on the last 10 years.",
                )
            )
        if long_lines:
            suggestions.append(
                Suggestion(
                    title="Break up long paragraphs",
                    before=long_lines[0][:200],
                    after="Split into short bullets of one or two lines each.",
                    priority="LOW",
                )
            )

        suggestions.sort(key=lambda item: _PRIORITY_ORDER[item.priority])
        return LocalResult(
            local_score=overall,
            grade=grade_for_score(overall),
            components=components,
            strengths=strengths,
            weaknesses=weaknesses,
            suggestions=suggestions[:MAX_SUGGESTIONS],
            stats={
                "words": word_count,
                "bullets": len(bullets),
                "strong_bullets": len(strong),
                "weak_bullets": len(weak),
                "quantified_bullets": len(quantified),
                "sections": len(sections),
                "skills": len(skills),
            },
        )

    @staticmethod
    def _empty_result(text: str) -> LocalResult:
        reason = "The resume is empty." if not text.strip() else "The resume has no readable words."
        components = {
            name: ComponentScore(score=0, weight=weight, notes=[reason])
            for name, weight in COMPONENT_WEIGHTS.items()
        }
        return LocalResult(
            local_score=0,
            grade="F",
            components=components,
            strengths=[],
            weaknesses=[reason, "No sections, contact details or achievements could be detected."],
            suggestions=[
                Suggestion(
                    title="Paste the full text of your resume",
                    after="Include contact details, a summary, experience, education and skills.",
                    priority="HIGH",
                )
            ],
            stats={"words": 0},
        )

    @staticmethod
    def _content_quality(bullets: list[str], strong: list[str], weak: list[str]) -> ComponentScore:
        weight = COMPONENT_WEIGHTS["content_quality"]
        if not bullets:
            return ComponentScore(score=20, weight=weight, notes=["no achievement statements"])
        strong_ratio = len(strong) / len(bullets)
        avg_words = sum(len(bullet.split()) for bullet in bullets) / len(bullets)
        score = 35 + 50 * strong_ratio
        score += 15 if 8 <= avg_words <= 30 else 0
        score -= min(30, len(weak) * 6)
        notes = [f"strong openers {len(strong)}/{len(bullets)}", f"weak phrasing {len(weak)}"]
        return ComponentScore(score=_clamp(score), weight=weight, notes=notes)

    @staticmethod
    def _ats_compatibility(
        sections: set[str],
        skills: set[str],
        has_email: bool,
        has_phone: bool,
        has_link: bool,
    ) -> ComponentScore:
        score = 15 * len(sections)
        score += 10 if has_email else 0
        score += 10 if has_phone else 0
        score += 5 if has_link else 0
        score += min(15, 3 * len(skills))
        notes = [f"sections {len(sections)}/{len(SECTION_PATTERNS)}", f"skills {len(skills)}"]
        return ComponentScore(score=_clamp(score), weight=COMPONENT_WEIGHTS["ats_compatibility"], notes=notes)

    @staticmethod
    def _format_structure(word_count: int, bullets: list[str], long_lines: list[str]) -> ComponentScore:
        if 250 <= word_count <= 900:
            score = 50
        elif 150 <= word_count <= 1200:
            score = 30
        else:
            score = 10
        if len(bullets) >= 5:
            score += 30
        elif bullets:
            score += 15
        score += 20 - min(20, 5 * len(long_lines))
        notes = [f"words {word_count}", f"long lines {len(long_lines)}"]
        return ComponentScore(score=_clamp(score), weight=COMPONENT_WEIGHTS["format_structure"], notes=notes)

    @staticmethod
    def _impact_metrics(bullets: list[str], quantified: list[str]) -> ComponentScore:
        weight = COMPONENT_WEIGHTS["impact_metrics"]
        if not bullets:
            return ComponentScore(score=0, weight=weight, notes=["no statements to measure"])
        # Half of all statements quantified earns full marks.
        ratio = len(quantified) / len(bullets)
        score = 100 * min(1.0, ratio / 0.5)
        return ComponentScore(score=_clamp(score), weight=weight, notes=[f"quantified {len(quantified)}/{len(bullets)}"])
