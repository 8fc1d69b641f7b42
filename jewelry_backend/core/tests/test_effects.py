# core/tests/test_effects.py

from __future__ import annotations

from django.db import transaction
from django.test import TestCase

from core.effects import PostCommitEffects


class PostCommitEffectsTests(TestCase):
    def test_effects_run_after_commit_in_order(self):
        calls = []
        effects = PostCommitEffects(context={"order_id": 1})
        effects.add("first", calls.append, "a")
        effects.add("second", calls.append, "b")

        with self.captureOnCommitCallbacks(execute=True):
            with transaction.atomic():
                effects.schedule()
                self.assertEqual(calls, [])

        self.assertEqual(calls, ["a", "b"])

    def test_failing_effect_does_not_stop_others(self):
        calls = []

        def boom():
            raise RuntimeError("gateway down")

        effects = PostCommitEffects()
        effects.add("boom", boom)
        effects.add("after", calls.append, "ran")

        with self.assertLogs("core.effects", level="ERROR") as logs:
            effects.run_all()

        self.assertEqual(calls, ["ran"])
        self.assertIn("Post-commit effect failed", logs.output[0])

    def test_rollback_discards_effects(self):
        calls = []
        effects = PostCommitEffects()
        effects.add("never", calls.append, "x")

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    effects.schedule()
                    raise ValueError("abort")
            except ValueError:
                pass

        self.assertEqual(callbacks, [])
        self.assertEqual(calls, [])

    def test_empty_list_schedules_nothing(self):
        with self.captureOnCommitCallbacks() as callbacks:
            with transaction.atomic():
                PostCommitEffects().schedule()
        self.assertEqual(len(callbacks), 0)
