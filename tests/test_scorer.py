from __future__ import annotations

import dataclasses
import unittest

from action_engine.actions.scorer import apply_scores, engagement_score, relevance_score, score
from action_engine.data.models import Action, IntentContext, PreferenceState


def _action(**overrides) -> Action:
    base = dict(
        id="a1",
        title="Volunteer at the River Cleanup",
        description="Help remove plastic from the river banks.",
        tags=["environment"],
        intent="volunteer",
        topic="climate change",
        location="Local",
        impact=3,
        urgency=3,
    )
    base.update(overrides)
    return Action(**base)


class ScorerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = IntentContext(intent="volunteer", topic="climate change", location="Local")

    def test_relevance_components(self) -> None:
        both = _action(tags=["Climate Change", "local"])
        topic_only = _action(tags=["climate change"], location="Portland")
        location_only = _action(tags=["housing"], title="Tenant Union", description="Organize renters.")
        neither = _action(tags=["housing"], title="Tenant Union", description="Organize renters.", location="Portland")

        self.assertAlmostEqual(relevance_score(both, self.ctx), 1.0)
        self.assertAlmostEqual(relevance_score(topic_only, self.ctx), 0.8)
        self.assertAlmostEqual(relevance_score(location_only, self.ctx), 0.7)
        self.assertAlmostEqual(relevance_score(neither, self.ctx), 0.5)

    def test_topic_in_title_counts(self) -> None:
        action = _action(tags=[], title="Climate change town hall", location="Portland")
        self.assertAlmostEqual(relevance_score(action, self.ctx), 0.8)

    def test_location_agnostic_actions_match_anywhere(self) -> None:
        action = _action(tags=["housing"], title="T", description="D", location="Online")
        self.assertAlmostEqual(relevance_score(action, self.ctx), 0.7)

    def test_engagement_formula_and_cap(self) -> None:
        empty = PreferenceState()
        self.assertEqual(engagement_score(_action(impact=3, urgency=3), empty), 75.0)
        self.assertEqual(engagement_score(_action(impact=5, urgency=5), empty), 100.0)

        prefs = PreferenceState(
            preferred_intents=["volunteer"],
            preferred_topics=["climate change"],
            preferred_locations=["local"],
        )
        self.assertEqual(engagement_score(_action(impact=2, urgency=1), prefs), 40 + 15 + 15 + 10 + 5)

    def test_preferred_intent_matches_underscore_form(self) -> None:
        prefs = PreferenceState(preferred_intents=["be heard"])
        a = _action(intent="be_heard", impact=1, urgency=1)
        self.assertEqual(engagement_score(a, prefs), 20 + 15 + 5)

    def test_preferred_topic_adds_at_least_fifteen(self) -> None:
        prefs = PreferenceState(preferred_topics=["climate change"])
        matching = _action(topic="climate change", impact=2, urgency=2)
        other = _action(topic="housing", impact=2, urgency=2)
        diff = score(matching, self.ctx, prefs).engagement_score - score(other, self.ctx, prefs).engagement_score
        self.assertGreaterEqual(diff, 15)

    def test_scoring_is_deterministic(self) -> None:
        prefs = PreferenceState(preferred_topics=["climate change"], preferred_locations=["Local"])
        action = _action(tags=["climate change", "urgent"], impact=4, urgency=4)
        first = score(action, self.ctx, prefs)
        second = score(dataclasses.replace(action), self.ctx, prefs.copy())
        self.assertEqual(first, second)

    def test_apply_scores_writes_back(self) -> None:
        actions = [_action(id="x", tags=["climate change"]), _action(id="y", location="Portland", tags=[])]
        result = apply_scores(actions, self.ctx, PreferenceState())
        self.assertIs(result[0], actions[0])
        self.assertAlmostEqual(actions[0].relevance_score, 1.0)
        self.assertEqual(actions[0].engagement_score, 75.0)
        self.assertAlmostEqual(actions[1].relevance_score, 0.5)


if __name__ == "__main__":
    unittest.main()
