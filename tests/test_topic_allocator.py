"""
Tests for the topic allocator.

Pure functions only, no database or LLM.
"""
import random

import pytest

from generation.schemas import QuestionConfig, TopicHistogramEntry
from generation.topic_allocator import allocate, round_half_up, total_quota, NoEligibleTopicsError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _config(n: int) -> QuestionConfig:
    return QuestionConfig(exam_id=1, course_id=1, number_of_questions=n)


def _histogram(*counts) -> list:
    return [
        TopicHistogramEntry(topic_id=i + 1, topic_name=f"T{i + 1}", question_count=c)
        for i, c in enumerate(counts)
    ]


def _quotas(allocations) -> list:
    return [a.questions_to_generate for a in allocations]


# ---------------------------------------------------------------------------
# round_half_up
# ---------------------------------------------------------------------------

class TestRoundHalfUp:
    def test_half_goes_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3

    def test_differs_from_bankers_rounding(self):
        assert round(2.5) == 2
        assert round_half_up(2.5) == 3

    def test_below_half_goes_down(self):
        assert round_half_up(1.49) == 1
        assert round_half_up(0.0) == 0


# ---------------------------------------------------------------------------
# allocate
# ---------------------------------------------------------------------------

class TestAllocate:
    def test_empty_histogram_gives_empty_allocation(self):
        assert allocate(_config(10), []) == []

    def test_three_to_one_split(self):
        allocations = allocate(_config(8), _histogram(300, 100))
        assert _quotas(allocations) == [6, 2]
        assert total_quota(allocations) == 8

    def test_weightage_is_histogram_count(self):
        allocations = allocate(_config(8), _histogram(300, 100))
        assert [a.weightage for a in allocations] == [300, 100]
        assert [a.topic_name for a in allocations] == ["T1", "T2"]

    def test_positive_remainder_goes_to_first_topic(self):
        # 1/3 each of 1 → 0, 0, 0 → remainder +1
        allocations = allocate(_config(1), _histogram(5, 5, 5))
        assert _quotas(allocations) == [1, 0, 0]

    def test_negative_remainder_taken_from_first_topic(self):
        # 0.5 each of 1 → 1, 1 → remainder -1
        allocations = allocate(_config(1), _histogram(2, 2))
        assert _quotas(allocations) == [0, 1]

    def test_negative_remainder_never_drives_quota_below_zero(self):
        # 0.5 each of 2 → 1, 1, 1, 1 → remainder -2; first topic can only give 1
        allocations = allocate(_config(2), _histogram(4, 4, 4, 4))
        assert _quotas(allocations) == [0, 0, 1, 1]
        assert all(q >= 0 for q in _quotas(allocations))

    def test_zero_share_topics_are_kept(self):
        allocations = allocate(_config(10), _histogram(1000, 1))
        assert _quotas(allocations) == [10, 0]
        assert len(allocations) == 2

    def test_single_topic_gets_everything(self):
        assert _quotas(allocate(_config(37), _histogram(3))) == [37]

    def test_zero_total_rejected(self):
        with pytest.raises(ValueError):
            allocate(_config(5), _histogram(0, 0))

    def test_order_preserved(self):
        histogram = [
            TopicHistogramEntry(topic_id=9, topic_name="Z", question_count=50),
            TopicHistogramEntry(topic_id=2, topic_name="B", question_count=30),
            TopicHistogramEntry(topic_id=5, topic_name="M", question_count=30),
        ]
        allocations = allocate(_config(11), histogram)
        assert [a.topic_id for a in allocations] == [9, 2, 5]

    def test_deterministic(self):
        histogram = _histogram(17, 11, 7, 5, 3, 2)
        first = allocate(_config(23), histogram)
        second = allocate(_config(23), histogram)
        assert first == second

    def test_sum_and_membership_hold_for_random_histograms(self):
        rng = random.Random(1234)
        for _ in range(300):
            counts = sorted((rng.randint(1, 400) for _ in range(rng.randint(1, 12))), reverse=True)
            n = rng.randint(1, 600)
            allocations = allocate(_config(n), _histogram(*counts))
            assert total_quota(allocations) == n
            assert [a.topic_id for a in allocations] == list(range(1, len(counts) + 1))
            assert all(a.questions_to_generate >= 0 for a in allocations)


class TestNoEligibleTopicsError:
    def test_message_explains_what_to_check(self):
        err = NoEligibleTopicsError(_config(5))
        assert "No topics found" in str(err)
        assert err.config.number_of_questions == 5
