"""
Step 2 — Topic Allocator

Splits the requested question count across topics in proportion to how many
historical questions each topic has (deterministic, no LLM).

Rounding is half-away-from-zero, not Python's banker's rounding. The rounding
remainder goes to the first (highest-weight) topic so the quotas always sum to
exactly the requested total.
"""

import logging
import math
from typing import List, Sequence

from generation.schemas import QuestionConfig, TopicHistogramEntry, TopicAllocation

log = logging.getLogger("generation.pipeline")


class NoEligibleTopicsError(ValueError):
    """No topic has a historical question matching the selected configuration."""

    def __init__(self, config: QuestionConfig):
        self.config = config
        super().__init__(
            "No topics found with questions for the selected configuration. Please check:\n"
            "1. Topics exist in the database linked to this course\n"
            "2. Questions exist for those topics with the selected question type\n"
            "3. The course hierarchy (course -> subjects -> units -> chapters -> topics) is properly set up"
        )


def round_half_up(value: float) -> int:
    """Round a non-negative share to the nearest integer, .5 going up."""
    return int(math.floor(value + 0.5))


def _apply_remainder(quotas: List[int], remainder: int) -> None:
    """
    Add the remainder to the first quota.

    A negative remainder larger than the first quota is not allowed to push it
    below zero: the first quota is clamped at 0 and the leftover deficit is
    taken from the following topics in order.
    """
    if remainder >= 0:
        quotas[0] += remainder
        return

    deficit = -remainder
    for i, quota in enumerate(quotas):
        if deficit == 0:
            break
        taken = min(quota, deficit)
        quotas[i] = quota - taken
        deficit -= taken
        if i > 0 and taken:
            log.warning(f"[ALLOCATE] Rounding deficit spilled onto topic #{i} (-{taken})")


def allocate(
    config: QuestionConfig,
    histogram: Sequence[TopicHistogramEntry],
) -> List[TopicAllocation]:
    """
    Allocate config.number_of_questions across the histogram's topics.

    Args:
        config: Generation config (number_of_questions is the target total)
        histogram: Topics with at least one matching historical question,
                   sorted by descending count (ties by topic id)

    Returns:
        One TopicAllocation per histogram entry, in histogram order, whose
        questions_to_generate sum to config.number_of_questions.
        Empty when the histogram is empty.
    """
    if not histogram:
        return []

    requested = config.number_of_questions
    total = sum(entry.question_count for entry in histogram)
    if total <= 0:
        raise ValueError("Histogram has no questions; zero-count topics must be excluded")

    quotas = [round_half_up(entry.question_count / total * requested) for entry in histogram]
    remainder = requested - sum(quotas)
    if remainder:
        _apply_remainder(quotas, remainder)

    allocations = [
        TopicAllocation(
            topic_id=entry.topic_id,
            topic_name=entry.topic_name,
            weightage=entry.question_count,
            questions_to_generate=quota,
        )
        for entry, quota in zip(histogram, quotas)
    ]
    log.info(
        f"[ALLOCATE] {requested} questions over {len(allocations)} topics "
        f"(remainder {remainder:+d} applied to '{histogram[0].topic_name}')"
    )
    return allocations


def total_quota(allocations: Sequence[TopicAllocation]) -> int:
    return sum(a.questions_to_generate for a in allocations)
