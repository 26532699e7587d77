from __future__ import annotations

import unittest

from action_engine.data.models import Action, FilterState
from action_engine.search.facets import facet_counts, popular_tags
from action_engine.search.filtering import filter_actions
from action_engine.search.fuzzy import partial_similarity, substring_distance


def _action(
    action_id: str, *, tags, urgency=3, impact=3, time_commitment=None, title=None, org=None, category=None
) -> Action:
    return Action(
        id=action_id,
        title=title or f"Action {action_id}",
        description="",
        tags=list(tags),
        intent="volunteer",
        topic="climate change",
        location="Local",
        urgency=urgency,
        impact=impact,
        time_commitment=time_commitment,
        organization_name=org,
        category=category,
    )


class FuzzyTestCase(unittest.TestCase):
    def test_substring_distance(self) -> None:
        self.assertEqual(substring_distance("climat", "the climate crisis"), 0)
        self.assertEqual(substring_distance("clmate", "climate change"), 1)
        self.assertEqual(substring_distance("abc", ""), 3)
        self.assertIsNone(substring_distance("housing", "climate change", max_dist=1))

    def test_partial_similarity(self) -> None:
        self.assertEqual(partial_similarity("", "anything"), 1.0)
        self.assertEqual(partial_similarity("abc", ""), 0.0)
        self.assertEqual(partial_similarity("solar", "community solar gardens"), 1.0)
        self.assertAlmostEqual(partial_similarity("clmate", "climate change", 0.7), 1 - 1 / 6)
        self.assertEqual(partial_similarity("housing", "climate change", 0.7), 0.0)


class FilterActionsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.a1 = _action("a1", tags=["urgent", "local"], urgency=4, impact=5, time_commitment="5-10 minutes")
        self.a2 = _action("a2", tags=["urgent"], urgency=5, impact=3, time_commitment="2-4 hours")
        self.a3 = _action(
            "a3",
            tags=["local", "climate"],
            urgency=2,
            impact=3,
            time_commitment="1 minute",
            title="Volunteer at the food bank",
            org="Harvest Collective",
        )
        self.a4 = _action("a4", tags=["local"], urgency=4, impact=1)
        self.actions = [self.a1, self.a2, self.a3, self.a4]

    def _ids(self, actions) -> list[str]:
        return [a.id for a in actions]

    def test_empty_filter_is_identity(self) -> None:
        result = filter_actions(self.actions, FilterState())
        self.assertEqual(result, self.actions)
        self.assertIsNot(result, self.actions)

    def test_tags_use_and_semantics(self) -> None:
        result = filter_actions(self.actions, FilterState(tags={"urgent", "local"}))
        self.assertEqual(self._ids(result), ["a1"])
        self.assertNotIn("a2", self._ids(result))

    def test_tags_are_case_insensitive(self) -> None:
        result = filter_actions(self.actions, FilterState(tags={"URGENT"}))
        self.assertEqual(self._ids(result), ["a1", "a2"])

    def test_urgency_uses_or_semantics(self) -> None:
        result = filter_actions(self.actions, FilterState(urgency={4, 5}))
        self.assertEqual(self._ids(result), ["a1", "a2", "a4"])

    def test_single_tag_vs_single_urgency(self) -> None:
        only_urgent = _action("x", tags=["urgent"], urgency=4)
        self.assertEqual(filter_actions([only_urgent], FilterState(tags={"urgent", "local"})), [])
        self.assertEqual(filter_actions([only_urgent], FilterState(urgency={4, 5})), [only_urgent])

    def test_impact_membership(self) -> None:
        result = filter_actions(self.actions, FilterState(impact={3}))
        self.assertEqual(self._ids(result), ["a2", "a3"])

    def test_time_commitment_contains_and_excludes_missing(self) -> None:
        result = filter_actions(self.actions, FilterState(time_commitment={"Minute"}))
        self.assertEqual(self._ids(result), ["a1", "a3"])

    def test_fuzzy_query_tolerates_typos(self) -> None:
        self.assertEqual(self._ids(filter_actions(self.actions, FilterState(search_query="voluntear"))), ["a3"])
        self.assertEqual(self._ids(filter_actions(self.actions, FilterState(search_query="harvest"))), ["a3"])
        self.assertEqual(self._ids(filter_actions(self.actions, FilterState(search_query="climate"))), ["a3"])
        self.assertEqual(filter_actions(self.actions, FilterState(search_query="zzzzzz")), [])

    def test_query_matches_category(self) -> None:
        actions = [
            _action("p", tags=["climate"], category="policy"),
            _action("o", tags=["climate"], category="organization"),
            _action("n", tags=["climate"]),
        ]
        self.assertEqual(self._ids(filter_actions(actions, FilterState(search_query="organisation"))), ["o"])
        self.assertEqual(self._ids(filter_actions(actions, FilterState(search_query="Policy"))), ["p"])

    def test_axes_combine(self) -> None:
        state = FilterState(tags={"local"}, urgency={4}, impact={5, 1})
        self.assertEqual(self._ids(filter_actions(self.actions, state)), ["a1", "a4"])

    def test_filter_is_idempotent(self) -> None:
        states = [
            FilterState(tags={"local"}),
            FilterState(urgency={4, 5}, time_commitment={"minutes"}),
            FilterState(search_query="volunter", impact={3}),
        ]
        for state in states:
            once = filter_actions(self.actions, state)
            self.assertEqual(filter_actions(once, state), once)


class FacetsTestCase(unittest.TestCase):
    def test_popular_tags_and_counts(self) -> None:
        actions = [
            _action("a", tags=["local", "urgent"], urgency=4, time_commitment="1 minute", category="action"),
            _action("b", tags=["climate", "local"], urgency=4, impact=5),
            _action("c", tags=["urgent", "local"], urgency=2, time_commitment="1 minute", category="action"),
        ]
        self.assertEqual(
            popular_tags(actions),
            [{"tag": "local", "count": 3}, {"tag": "urgent", "count": 2}, {"tag": "climate", "count": 1}],
        )
        self.assertEqual(popular_tags(actions, limit=1), [{"tag": "local", "count": 3}])

        counts = facet_counts(actions)
        self.assertEqual(counts["urgency"], {"2": 1, "4": 2})
        self.assertEqual(counts["impact"], {"3": 2, "5": 1})
        self.assertEqual(counts["time_commitment"], {"1 minute": 2})
        self.assertEqual(counts["category"], {"action": 2})


if __name__ == "__main__":
    unittest.main()
