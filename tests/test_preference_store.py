from __future__ import annotations

import asyncio
import json
import unittest

from action_engine.data.models import Action, PreferenceState
from action_engine.preferences.keys import PreferenceKeys
from action_engine.preferences.repository import PreferenceRepository
from action_engine.preferences.store import PreferenceStore
from tests.fake_redis import FakeRedis, FakeRedisClient


def _action(action_id: str, *, intent="volunteer", topic="climate change", location="Local") -> Action:
    return Action(
        id=action_id,
        title=f"Action {action_id}",
        description="",
        tags=[],
        intent=intent,
        topic=topic,
        location=location,
    )


class _FlakyRepository:
    """前 fail_times 次 save 抛异常，之后记录快照"""

    def __init__(self, fail_times: int) -> None:
        self.fail_times = fail_times
        self.attempts = 0
        self.saved: list[PreferenceState] = []

    async def save(self, user_id: str, state: PreferenceState) -> None:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise ConnectionError("redis down")
        self.saved.append(state)


class PreferenceStoreTestCase(unittest.TestCase):
    def test_counters_equal_sum_of_batches(self) -> None:
        store = PreferenceStore("u1")
        store.record_view([_action("a"), _action("b")])
        store.record_view([_action("c"), _action("d"), _action("e")])
        store.record_view([])
        store.record_completion("a")
        store.record_completion("b")
        store.record_save("c")

        state = store.snapshot()
        self.assertEqual(state.total_actions_viewed, 5)
        self.assertEqual(state.actions_completed, 2)
        self.assertEqual(state.actions_saved, 1)
        self.assertIsNotNone(state.last_engagement_at)

    def test_lists_are_recent_first_deduped_and_capped(self) -> None:
        store = PreferenceStore("u1", list_cap=10)
        store.record_view([_action(str(i), topic=f"topic {i}") for i in range(12)])
        topics = store.snapshot().preferred_topics
        self.assertEqual(len(topics), 10)
        self.assertEqual(topics[0], "topic 11")
        self.assertNotIn("topic 0", topics)

        store.record_view([_action("again", topic="TOPIC 5")])
        topics = store.snapshot().preferred_topics
        self.assertEqual(topics[0], "TOPIC 5")
        self.assertEqual(len([t for t in topics if t.lower() == "topic 5"]), 1)

    def test_intents_are_normalized(self) -> None:
        store = PreferenceStore("u1")
        store.record_view([_action("a", intent="be_heard"), _action("b", intent="Be Heard")])
        self.assertEqual(store.snapshot().preferred_intents, ["be heard"])

    def test_rating_validation(self) -> None:
        store = PreferenceStore("u1")
        for bad in (0, 6, 3.5, True, "5"):
            with self.assertRaises(ValueError):
                store.record_rating("a", bad)  # type: ignore[arg-type]
        self.assertEqual(store.snapshot().action_ratings, {})

    def test_positive_rating_folds_and_low_rating_never_evicts(self) -> None:
        held = [_action("a", topic="transit", location="Boston")]
        store = PreferenceStore("u1")
        store.record_rating("a", 5, feedback="great", held=held)
        state = store.snapshot()
        self.assertEqual(state.preferred_topics, ["transit"])
        self.assertEqual(state.preferred_locations, ["Boston"])
        self.assertEqual(state.action_ratings, {"a": 5})

        store.record_rating("a", 1, held=held)
        state = store.snapshot()
        self.assertEqual(state.preferred_topics, ["transit"])
        self.assertEqual(state.action_ratings, {"a": 1})

    def test_low_rating_does_not_fold(self) -> None:
        store = PreferenceStore("u1")
        store.record_rating("a", 3, held=[_action("a", topic="transit")])
        self.assertEqual(store.snapshot().preferred_topics, [])

    def test_completion_and_save_mark_held_action_once(self) -> None:
        held = [_action("a"), _action("b")]
        store = PreferenceStore("u1")
        store.record_completion("a", held)
        first = held[0].completed_at
        self.assertIsNotNone(first)
        self.assertIsNone(held[1].completed_at)

        store.record_completion("a", held)
        self.assertEqual(held[0].completed_at, first)
        self.assertEqual(store.snapshot().actions_completed, 2)

        store.record_save("b", held)
        self.assertIsNotNone(held[1].saved_at)

    def test_time_spent(self) -> None:
        store = PreferenceStore("u1")
        store.record_time_spent("a", 30)
        store.record_time_spent("b", 12.5)
        with self.assertRaises(ValueError):
            store.record_time_spent("c", -1)
        self.assertEqual(store.snapshot().total_time_spent_seconds, 42.5)

    def test_time_spent_rejects_non_finite(self) -> None:
        store = PreferenceStore("u1")
        for bad in (float("nan"), float("inf"), float("-inf"), True, "5"):
            with self.assertRaises(ValueError):
                store.record_time_spent("a", bad)  # type: ignore[arg-type]
        store.record_time_spent("a", 5)
        self.assertEqual(store.snapshot().total_time_spent_seconds, 5.0)
        self.assertEqual(json.loads(store.export())["total_time_spent_seconds"], 5.0)

    def test_snapshot_is_a_copy_and_export_is_json(self) -> None:
        store = PreferenceStore("u1")
        store.record_view([_action("a")])
        snap = store.snapshot()
        snap.preferred_topics.append("mutated")
        snap.total_actions_viewed = 99
        self.assertEqual(store.snapshot().preferred_topics, ["climate change"])

        exported = json.loads(store.export())
        self.assertEqual(exported["total_actions_viewed"], 1)
        self.assertEqual(exported["preferred_locations"], ["Local"])


class PreferencePersistenceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._redis = FakeRedis()
        self._repo = PreferenceRepository(
            FakeRedisClient(self._redis),  # type: ignore[arg-type]
            keys=PreferenceKeys.with_prefix("test:"),
        )

    def test_keys_with_prefix(self) -> None:
        self.assertEqual(self._repo.keys.state("u1"), "test:preferences:u1")
        self.assertEqual(PreferenceKeys().state("u1"), "preferences:u1")

    def test_debounced_flush_writes_snapshot(self) -> None:
        async def _run() -> PreferenceState:
            store = PreferenceStore("u1", repository=self._repo, flush_delay_seconds=0.01)
            store.record_view([_action("a"), _action("b")])
            store.record_save("a")
            self.assertTrue(store.dirty)
            await asyncio.sleep(0.1)
            self.assertFalse(store.dirty)
            return await self._repo.load("u1")

        loaded = asyncio.run(_run())
        self.assertEqual(loaded.total_actions_viewed, 2)
        self.assertEqual(loaded.actions_saved, 1)
        self.assertEqual(loaded.preferred_topics, ["climate change"])
        # 两次变更只触发一次写入
        self.assertEqual(self._redis.set_calls, 1)

    def test_failed_flush_keeps_state_and_retries(self) -> None:
        repo = _FlakyRepository(fail_times=2)

        async def _run() -> PreferenceStore:
            store = PreferenceStore("u1", repository=repo, flush_delay_seconds=0.0)  # type: ignore[arg-type]
            store.record_completion("a")
            for _ in range(20):
                await asyncio.sleep(0)
            return store

        store = asyncio.run(_run())
        self.assertEqual(repo.attempts, 3)
        self.assertEqual(len(repo.saved), 1)
        self.assertEqual(repo.saved[0].actions_completed, 1)
        self.assertFalse(store.dirty)
        self.assertEqual(store.snapshot().actions_completed, 1)

    def test_aclose_flushes_pending_changes(self) -> None:
        async def _run() -> None:
            store = PreferenceStore("u1", repository=self._repo, flush_delay_seconds=60)
            store.record_rating("a", 4, held=[_action("a", topic="housing")])
            await store.aclose()

        asyncio.run(_run())
        loaded = asyncio.run(self._repo.load("u1"))
        self.assertEqual(loaded.action_ratings, {"a": 4})
        self.assertEqual(loaded.preferred_topics, ["housing"])

    def test_invalid_snapshot_loads_fresh_state(self) -> None:
        asyncio.run(self._redis.set("test:preferences:u1", json.dumps({"preferred_topics": "oops"})))
        state = asyncio.run(self._repo.load("u1"))
        self.assertEqual(state, PreferenceState())

        asyncio.run(self._redis.set("test:preferences:u1", "{not json"))
        self.assertEqual(asyncio.run(self._repo.load("u1")), PreferenceState())

    def test_non_mapping_ratings_load_fresh_state(self) -> None:
        snapshot = PreferenceState(actions_saved=2).to_dict()
        snapshot["action_ratings"] = [1, 2]
        asyncio.run(self._redis.set("test:preferences:u1", json.dumps(snapshot)))
        self.assertEqual(asyncio.run(self._repo.load("u1")), PreferenceState())

    def test_missing_snapshot_loads_fresh_state(self) -> None:
        self.assertEqual(asyncio.run(self._repo.load("nobody")), PreferenceState())


if __name__ == "__main__":
    unittest.main()
