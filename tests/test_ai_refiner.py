import dataclasses
import json
import os
import threading
import unittest
from unittest.mock import patch

os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("JWT_SECRET", "unit-test-secret")

from app.ai.factory import get_ai_client
from app.ai.providers.openai_provider import OpenAIProvider
from app.core.config import settings
from app.core.errors import AIMisconfigured, AIUnavailable
from app.scoring.ai_refiner import AIRefiner, parse_verdict
from app.scoring.local_scorer import LocalScorer


def verdict_payload(**overrides) -> str:
    payload = {
        "ai_final_score": 84,
        "summary": "Solid backend resume with measurable impact.",
        "strengths": ["Quantified achievements", "Clear structure"],
        "weaknesses": ["Summary is generic"],
        "improvement_suggestions": ["Tailor the summary to the target role"],
        "before_after_rewrites": [
            {
                "title": "Sharpen the summary",
                "before": "Backend engineer.",
                "after": "Backend engineer who scaled payments to 1.2M users.",
                "priority": "high",
            }
        ],
        "confidence_level": "High",
    }
    payload.update(overrides)
    return json.dumps(payload)


class FakeAIClient:
    model = "fake-model"

    def __init__(self, content: str = "", error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls = []

    async def complete(self, messages, *, temperature, max_tokens, json_mode=False):
        self.calls.append({"messages": list(messages), "json_mode": json_mode, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.content


class ParseVerdictTests(unittest.TestCase):
    def test_valid_payload(self):
        verdict = parse_verdict(verdict_payload())
        self.assertEqual(verdict.ai_score, 84)
        self.assertEqual(verdict.confidence_level, "high")
        self.assertEqual(len(verdict.before_after_rewrites), 1)
        self.assertEqual(verdict.before_after_rewrites[0].priority, "HIGH")

    def test_score_is_clamped(self):
        self.assertEqual(parse_verdict(verdict_payload(ai_final_score=140)).ai_score, 100)
        self.assertEqual(parse_verdict(verdict_payload(ai_final_score=-3)).ai_score, 0)

    def test_invalid_payloads_are_unavailable(self):
        invalid = [
            "",
            "not json at all",
            "[1, 2, 3]",
            verdict_payload(ai_final_score="85"),
            verdict_payload(ai_final_score=True),
            verdict_payload(ai_final_score=float("nan")),
            verdict_payload(ai_final_score=float("inf")),
            verdict_payload(ai_final_score=float("-inf")),
            verdict_payload(summary=""),
            verdict_payload(strengths=[]),
            verdict_payload(weaknesses="none"),
            verdict_payload(improvement_suggestions=None),
        ]
        for content in invalid:
            with self.assertRaises(AIUnavailable):
                parse_verdict(content)

    def test_rewrites_without_after_are_dropped(self):
        verdict = parse_verdict(
            verdict_payload(before_after_rewrites=[{"title": "x", "before": "y"}, "junk", {"after": "Better line"}])
        )
        self.assertEqual(len(verdict.before_after_rewrites), 1)
        self.assertEqual(verdict.before_after_rewrites[0].title, "Suggested rewrite")
        self.assertEqual(verdict.before_after_rewrites[0].priority, "MEDIUM")


class AIRefinerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.local_result = LocalScorer().score("EXPERIENCE\n- Built Python services used by 2000 users.\n")

    async def test_refine_returns_verdict(self):
        client = FakeAIClient(content=verdict_payload())
        verdict = await AIRefiner(client).refine("resume text", self.local_result)
        self.assertEqual(verdict.ai_score, 84)
        self.assertEqual(len(client.calls), 1)
        self.assertTrue(client.calls[0]["json_mode"])
        system, user = client.calls[0]["messages"]
        self.assertEqual(system.role, "system")
        self.assertIn("UNTRUSTED_INPUT_START", user.content)

    async def test_provider_failure_is_unavailable_without_retry(self):
        client = FakeAIClient(error=TimeoutError("upstream timed out"))
        with self.assertRaises(AIUnavailable) as ctx:
            await AIRefiner(client).refine("resume text", self.local_result)
        self.assertEqual(ctx.exception.code, "AI_UNAVAILABLE")
        self.assertNotIn("timed out", ctx.exception.message)
        self.assertEqual(len(client.calls), 1)

    async def test_malformed_response_is_unavailable(self):
        client = FakeAIClient(content="{\"summary\": \"missing everything else\"}")
        with self.assertRaises(AIUnavailable):
            await AIRefiner(client).refine("resume text", self.local_result)

    async def test_non_finite_score_is_unavailable(self):
        client = FakeAIClient(content=verdict_payload(ai_final_score=float("inf")))
        with self.assertRaises(AIUnavailable) as ctx:
            await AIRefiner(client).refine("resume text", self.local_result)
        self.assertEqual(ctx.exception.code, "AI_UNAVAILABLE")

    async def test_missing_client_is_misconfigured(self):
        refiner = AIRefiner(None)
        self.assertFalse(refiner.configured)
        with self.assertRaises(AIMisconfigured) as ctx:
            await refiner.refine("resume text", self.local_result)
        self.assertEqual(ctx.exception.code, "AI_MISCONFIGURED")

    async def test_run_logging_happens_off_the_event_loop(self):
        logged = []

        def record(**fields):
            logged.append((threading.get_ident(), fields))

        client = FakeAIClient(content=verdict_payload())
        with patch("app.scoring.ai_refiner.log_ai_refinement_run", record):
            await AIRefiner(client).refine("resume text", self.local_result)
        self.assertEqual(len(logged), 1)
        thread_id, fields = logged[0]
        self.assertNotEqual(thread_id, threading.get_ident())
        self.assertEqual(fields["status"], "success")
        self.assertEqual(fields["model"], "fake-model")


class AIClientFactoryTests(unittest.TestCase):
    def test_missing_or_placeholder_key_is_misconfigured(self):
        for key in (None, "", "your_openai_api_key"):
            with self.assertRaises(AIMisconfigured):
                get_ai_client(dataclasses.replace(settings, openai_api_key=key))

    def test_openai_client_makes_a_single_attempt(self):
        config = dataclasses.replace(settings, openai_api_key="sk-test", ai_model="gpt-4o-mini", ai_timeout_s=12.0)
        client = get_ai_client(config)
        self.assertIsInstance(client, OpenAIProvider)
        self.assertEqual(client.model, "gpt-4o-mini")
        self.assertEqual(client._client.max_retries, 0)


if __name__ == "__main__":
    unittest.main()
