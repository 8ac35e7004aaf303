import os
import unittest

os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("JWT_SECRET", "unit-test-secret")

from app.core.errors import AIMisconfigured, AIUnavailable
from app.services.chat_coach import FALLBACK_ANSWER, answer
from app.services.help_topics import HELP_TOPICS, get_help


class FakeAIClient:
    model = "fake-model"

    def __init__(self, content: str = "", error: Exception | None = None):
        self.content = content
        self.error = error
        self.messages = []

    async def complete(self, messages, *, temperature, max_tokens, json_mode=False):
        self.messages = list(messages)
        if self.error is not None:
            raise self.error
        return self.content


class HelpTopicTests(unittest.TestCase):
    def test_known_topic(self):
        body = get_help("Scoring")
        self.assertTrue(body["success"])
        self.assertEqual(body["topic"], "scoring")
        self.assertEqual(body["format"], "markdown")
        self.assertTrue(body["help_message"])

    def test_unknown_or_missing_topic_falls_back_to_general(self):
        for topic in (None, "", "weather"):
            self.assertEqual(get_help(topic)["topic"], "general")

    def test_related_topics_exist(self):
        for key, entry in HELP_TOPICS.items():
            for related in entry.related:
                self.assertIn(related, HELP_TOPICS, f"{key} -> {related}")


class ChatCoachTests(unittest.IsolatedAsyncioTestCase):
    async def test_answer_includes_analysis_context(self):
        client = FakeAIClient(content="  Focus on quantifying your results.  ")
        text = await answer(client, "How do I improve?", {"final_score": 64, "weaknesses": ["No metrics"]})
        self.assertEqual(text, "Focus on quantifying your results.")
        self.assertIn("No metrics", client.messages[1].content)

    async def test_empty_answer_uses_fallback(self):
        text = await answer(FakeAIClient(content="   "), "Hi", {})
        self.assertEqual(text, FALLBACK_ANSWER)

    async def test_provider_error_is_unavailable(self):
        with self.assertRaises(AIUnavailable):
            await answer(FakeAIClient(error=RuntimeError("rate limited")), "Hi", {})

    async def test_missing_client_is_misconfigured(self):
        with self.assertRaises(AIMisconfigured):
            await answer(None, "Hi", {})


if __name__ == "__main__":
    unittest.main()
