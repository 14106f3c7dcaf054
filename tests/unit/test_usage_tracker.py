"""
Unit tests for the usage tracker.

Time is driven by a fake clock so window behavior is deterministic.
"""

from datetime import timedelta

import pytest

from recall.generation import MemorySnapshot, UsageTracker


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def usage(clock):
    return UsageTracker(question_window=timedelta(hours=1), clock=clock)


class TestMemoryUsage:
    """Tests for recently-used memory bookkeeping."""

    def test_mark_used_is_keyed_by_id_and_title(self, usage):
        usage.mark_used(1, "Dog walk")

        assert usage.is_recently_used(1, "Dog walk")
        assert usage.is_recently_used("1", "Dog walk")
        assert not usage.is_recently_used(1, "Something else")

    def test_lookup_without_title_matches_any_title(self, usage):
        usage.mark_used(7, "Beach day")

        assert usage.is_recently_used(7)
        assert not usage.is_recently_used(8)

    def test_last_used_returns_mark_time(self, usage, clock):
        usage.mark_used(1, "A")
        clock.advance(30)
        usage.mark_used(2, "B")

        assert usage.last_used(1, "A") == 1000.0
        assert usage.last_used(2, "B") == 1030.0
        assert usage.last_used(3, "C") is None

    def test_forget_renamed_drops_stale_titles(self, usage):
        usage.mark_used(1, "Old title")
        usage.mark_used(2, "Unchanged")

        removed = usage.forget_renamed(
            [MemorySnapshot(id=1, title="New title"), MemorySnapshot(id=2, title="Unchanged")]
        )

        assert removed == 1
        assert not usage.is_recently_used(1)
        assert usage.is_recently_used(2, "Unchanged")


class TestQuestionHistory:
    """Tests for issued-question history."""

    def test_recent_questions_expire_after_window(self, usage, clock):
        usage.record_question("What did you eat?")
        assert usage.recent_question_texts() == ["What did you eat?"]

        clock.advance(3601)

        assert usage.recent_question_texts() == []
        assert usage.stats()["total_tracked_questions"] == 0


class TestMaintenance:
    """Tests for pruning, commit, reset and stats."""

    def test_prune_older_than_removes_only_old_entries(self, usage, clock):
        usage.mark_used(1, "Old")
        clock.advance(500)
        usage.mark_used(2, "New")
        usage.record_question("Where did you go?")
        clock.advance(200)

        removed = usage.prune_older_than(timedelta(minutes=10))

        assert removed == 1
        assert not usage.is_recently_used(1, "Old")
        assert usage.is_recently_used(2, "New")
        assert usage.recent_question_texts() == ["Where did you go?"]

    def test_commit_records_memories_and_questions(self, usage):
        memories = [MemorySnapshot(id=1, title="A"), MemorySnapshot(id=2, title="B")]

        usage.commit(memories, ["What did you buy?"])

        assert usage.stats() == {
            "used_memories_count": 2,
            "recent_questions_count": 1,
            "total_tracked_questions": 1,
        }

    def test_reset_clears_everything(self, usage):
        usage.commit([MemorySnapshot(id=1, title="A")], ["What did you buy?"])

        usage.reset()

        assert usage.stats()["used_memories_count"] == 0
        assert usage.recent_question_texts() == []
