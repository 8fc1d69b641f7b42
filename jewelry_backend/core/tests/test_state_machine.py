# core/tests/test_state_machine.py

from __future__ import annotations

from django.test import SimpleTestCase

from core.exceptions import InvalidTransitionError
from core.state_machine import TransitionGraph

GRAPH = TransitionGraph.build(
    "widget",
    {
        "draft": {"live", "dropped"},
        "live": {"archived"},
        "archived": set(),
        "dropped": set(),
    },
)


class TransitionGraphTests(SimpleTestCase):
    def test_statuses_include_targets(self):
        self.assertEqual(GRAPH.statuses, {"draft", "live", "archived", "dropped"})

    def test_terminal_states(self):
        self.assertEqual(GRAPH.terminal_states, {"archived", "dropped"})

    def test_is_valid_only_for_declared_edges(self):
        self.assertTrue(GRAPH.is_valid("draft", "live"))
        self.assertFalse(GRAPH.is_valid("live", "draft"))
        self.assertFalse(GRAPH.is_valid("draft", "draft"))
        self.assertFalse(GRAPH.is_valid("nonsense", "live"))

    def test_validate_raises_for_unknown_target(self):
        with self.assertRaises(InvalidTransitionError) as ctx:
            GRAPH.validate(entity_id=1, current="draft", target="exploded")
        self.assertIn("Unknown widget status", str(ctx.exception))

    def test_validate_raises_for_missing_edge(self):
        with self.assertRaises(InvalidTransitionError) as ctx:
            GRAPH.validate(entity_id=7, current="archived", target="live")
        self.assertIn("Widget 7 cannot transition from 'archived' to 'live'", str(ctx.exception))

    def test_validate_passes_declared_edge(self):
        GRAPH.validate(entity_id=1, current="live", target="archived")
