"""
Unit tests for QuestionGenerator.

The model is replaced with a scripted FakeGenerator; no Ollama server is
needed.
"""

import random
from itertools import combinations
from unittest.mock import Mock

import pytest

from conftest import FakeGenerator
from recall.generation import (
    MemorySelector,
    MemorySnapshot,
    QuestionGenerationError,
    QuestionGenerator,
    UsageTracker,
)
from recall.generation.dedup import overlap_ratio
from recall.generation.fallback import GENERIC_QUESTION
from recall.llm import ServiceTimeoutError


@pytest.fixture
def usage():
    return UsageTracker()


def make_generator(client, usage, **kwargs):
    kwargs.setdefault("inter_call_delay", 0)
    return QuestionGenerator(
        client,
        usage,
        selector=MemorySelector(usage, rng=random.Random(0)),
        **kwargs,
    )


class TestUnreachableService:
    """Tests for generation when every model call fails."""

    def test_every_memory_gets_a_fallback_question(self, usage, fake_llm, sample_memories):
        result = make_generator(fake_llm, usage).generate(sample_memories, 5)

        assert len(result.questions) == 3
        assert all(q.source == "fallback" for q in result.questions)
        assert {q.text for q in result.questions} == {
            "What is your pet's name?",
            "Where did you go?",
            "What did you eat?",
        }
        assert result.metadata["fallback_questions"] == 3

    def test_questions_carry_memory_context(self, usage, fake_llm, sample_memories):
        result = make_generator(fake_llm, usage).generate(sample_memories, 3)

        by_id = {m.id: m for m in sample_memories}
        for question in result.questions:
            memory = by_id[question.memory_id]
            assert question.context == memory.description
            assert question.category == memory.category

    def test_timeout_also_falls_back(self, usage, sample_memories):
        client = FakeGenerator(error=ServiceTimeoutError("slow"))

        result = make_generator(client, usage).generate(sample_memories, 2)

        assert len(result.questions) == 2


class TestModelOutput:
    """Tests for the per-memory model pass."""

    def test_parsed_model_questions(self, usage, sample_memories):
        client = FakeGenerator(responses=[
            "Question: What is the name of your dog?",
            "Question: Which city did you visit in May?",
            "Question: What did you have for breakfast?",
        ])

        result = make_generator(client, usage).generate(sample_memories, 3)

        assert [q.source for q in result.questions] == ["model"] * 3
        assert {q.text for q in result.questions} == {
            "What is the name of your dog?",
            "Which city did you visit in May?",
            "What did you have for breakfast?",
        }

    def test_repeated_model_output_falls_back(self, usage, sample_memories):
        client = FakeGenerator(responses=["Question: What do you remember most?"] * 3)

        result = make_generator(client, usage).generate(sample_memories, 3)

        sources = [q.source for q in result.questions]
        assert sources.count("model") == 1
        assert sources.count("fallback") == 2

    def test_unparsable_output_falls_back(self, usage, sample_memories):
        client = FakeGenerator(responses=["I am not sure."] * 3)

        result = make_generator(client, usage).generate(sample_memories, 3)

        assert all(q.source == "fallback" for q in result.questions)

    def test_sleeps_between_model_calls(self, usage, sample_memories):
        sleep = Mock()
        client = FakeGenerator(responses=[
            "Question: What is the name of your dog?",
            "Question: Which city did you visit in May?",
            "Question: What did you have for breakfast?",
        ])

        make_generator(client, usage, inter_call_delay=0.5, sleep=sleep).generate(sample_memories, 3)

        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)

    def test_uses_generation_sampling_options(self, usage, sample_memories):
        client = FakeGenerator(responses=["Question: What is the name of your dog?"])

        make_generator(client, usage).generate(sample_memories[:1], 1)

        assert client.options[0].temperature == pytest.approx(0.1)
        assert client.options[0].top_p == pytest.approx(0.8)
        assert client.options[0].num_predict == 500


class TestBatchPass:
    """Tests for the batch call that fills uncovered memories."""

    def test_batch_question_fills_gap(self, usage):
        memory = MemorySnapshot(id=1, title="Rainy day", description="It was grey")
        usage.record_question(GENERIC_QUESTION)
        usage.record_question('What do you remember about "Rainy day"?')
        client = FakeGenerator(responses=[
            "I don't know.",
            "1. What was the weather like on the rainy day?",
        ])

        result = make_generator(client, usage).generate([memory], 1)

        assert len(result.questions) == 1
        question = result.questions[0]
        assert question.source == "batch"
        assert question.memory_id == 1
        assert question.text == "What was the weather like on the rainy day?"


class TestFailureAndBookkeeping:
    """Tests for errors, usage commit and metadata."""

    def test_no_memories(self, usage, fake_llm):
        with pytest.raises(ValueError, match="No memories provided"):
            make_generator(fake_llm, usage).generate([], 3)

    def test_count_must_be_positive(self, usage, fake_llm, sample_memories):
        with pytest.raises(ValueError):
            make_generator(fake_llm, usage).generate(sample_memories, 0)

    def test_nothing_generated_raises_and_commits_nothing(self, usage, fake_llm):
        memory = MemorySnapshot(id=1, title="Rainy day", description="It was grey")
        usage.record_question(GENERIC_QUESTION)
        usage.record_question('What do you remember about "Rainy day"?')

        with pytest.raises(QuestionGenerationError) as exc_info:
            make_generator(fake_llm, usage).generate([memory], 1)

        assert exc_info.value.selected_count == 1
        assert usage.stats()["used_memories_count"] == 0

    def test_success_commits_usage(self, usage, fake_llm, sample_memories):
        result = make_generator(fake_llm, usage).generate(sample_memories, 3)

        for memory in sample_memories:
            assert usage.is_recently_used(memory.id, memory.title)
        assert set(usage.recent_question_texts()) == {q.text for q in result.questions}

    def test_second_call_avoids_recent_questions(self, usage, fake_llm, sample_memories):
        generator = make_generator(fake_llm, usage)
        first = generator.generate(sample_memories, 3)
        second = generator.generate(sample_memories, 3)

        first_texts = {q.text for q in first.questions}
        assert not first_texts & {q.text for q in second.questions}

    def test_duplicate_ids_collapse(self, usage, fake_llm):
        memories = [
            MemorySnapshot(id=5, title="Dog walk", description="We walked the dog", category="pets"),
            MemorySnapshot(id=5, title="Dog walk again", description="We walked the dog", category="pets"),
        ]

        result = make_generator(fake_llm, usage).generate(memories, 2)

        assert len(result.questions) == 1
        assert result.metadata["selected_memories"] == 1

    def test_count_and_overlap_bounds(self, usage, fake_llm):
        memories = [
            MemorySnapshot(id=i, title=f"Memory {i}", description=text)
            for i, text in enumerate([
                "Bought a new bike",
                "Dinner with my sister",
                "We visited Porto",
                "My cat name is Luna",
                "Ran 5 kilometers",
                "Started painting lessons",
            ], start=1)
        ]

        result = make_generator(fake_llm, usage).generate(memories, 4)

        assert 1 <= len(result.questions) <= 4
        for a, b in combinations(result.questions, 2):
            assert overlap_ratio(a.text, b.text) <= 0.7

    def test_metadata(self, usage, fake_llm, sample_memories):
        result = make_generator(fake_llm, usage).generate(sample_memories, 2)

        metadata = result.metadata
        assert metadata["total_memories"] == 3
        assert metadata["selected_memories"] == 2
        assert metadata["generated_questions"] == 2
        assert metadata["used_memories_count"] == 2
        assert len(metadata["memory_question_map"]) == 2
        titles = {m.title for m in sample_memories}
        assert all(entry["memory_title"] in titles for entry in metadata["memory_question_map"])
