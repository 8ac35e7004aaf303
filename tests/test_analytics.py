import dataclasses
import os
import sqlite3
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("JWT_SECRET", "unit-test-secret")

from app.analytics import db as analytics_db
from app.core.config import settings


class AnalyticsDbTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.db_path = os.path.join(tmp.name, "analytics", "runs.db")
        config = dataclasses.replace(settings, analytics_enabled=True, analytics_db_path=self.db_path)
        patcher = patch.object(analytics_db, "settings", config)
        patcher.start()
        self.addCleanup(patcher.stop)
        analytics_db.init_db()

    def test_summary_counts_runs(self):
        analytics_db.log_ai_refinement_run(run_id="a", model="m", status="success", latency_ms=120, prompt_chars=900)
        analytics_db.log_ai_refinement_run(run_id="b", model="m", status="success", latency_ms=80, prompt_chars=12000, prompt_truncated=True)
        analytics_db.log_ai_refinement_run(run_id="c", model="m", status="error", error_code="provider_error", latency_ms=5)

        summary = analytics_db.get_ai_run_summary()
        self.assertTrue(summary["enabled"])
        self.assertEqual(summary["total"], 3)
        self.assertEqual(summary["by_status"], {"success": 2, "error": 1})
        self.assertEqual(summary["success_rate"], 66.67)
        self.assertEqual(summary["top_errors"], [{"error_code": "provider_error", "count": 1}])
        self.assertEqual(summary["avg_success_latency_ms"], 100)
        self.assertEqual(summary["truncated_prompts"], 1)

    def test_purge_drops_expired_runs(self):
        stale = (datetime.now(timezone.utc) - timedelta(days=settings.analytics_retention_days + 5)).isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO ai_refinement_runs (created_at, run_id, model, status) VALUES (?, ?, ?, ?)",
                (stale, "old", "m", "success"),
            )
        analytics_db.log_ai_refinement_run(run_id="new", model="m", status="success")

        self.assertEqual(analytics_db.purge_old_records(), {"ai_refinement_runs": 1})
        self.assertEqual(analytics_db.get_ai_run_summary()["total"], 1)

    def test_disabled_analytics_is_a_no_op(self):
        with patch.object(analytics_db, "settings", dataclasses.replace(settings, analytics_enabled=False)):
            analytics_db.log_ai_refinement_run(run_id="x", model="m", status="success")
            self.assertEqual(analytics_db.get_ai_run_summary(), {"enabled": False})
            self.assertEqual(analytics_db.purge_old_records(), {"ai_refinement_runs": 0})


if __name__ == "__main__":
    unittest.main()
