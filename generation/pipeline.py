"""
Step 5 — Generator Pipeline

Generates the questions of an allocation list one at a time:
topics in allocation order, units of a topic in sequence, never in parallel.

Per unit:
  1. gather context (historical sample, earlier generated sample, notes, session)
  2. build the prompt
  3. call the model               ─┐ any error here fails this unit only
  4. persist + record + emit       ─┘
  5. wait GENERATION_DELAY_SECONDS

Errors in steps 1–2 (or in emitting) are fatal: the run stops with status FAILED.
"""

import asyncio
import logging
import os
from typing import Awaitable, Callable, List, Optional, Sequence

from generation.prompt_builder import build_prompt
from generation.question_generator import generate_question
from generation.question_store import QuestionStore
from generation.schemas import (
    QuestionConfig, TopicAllocation, GeneratedQuestion, GeneratedQuestionData,
    QuestionStatus, RunStatus, TopicProgress, GenerationProgress,
)
from generation.session_context import SessionContext, gather_context
from generation.topic_allocator import total_quota

log = logging.getLogger("generation.pipeline")

GENERATION_DELAY_SECONDS = float(os.getenv("GENERATION_DELAY_SECONDS", "1.0"))

GenerateFn = Callable[[Optional[str], str], Awaitable[GeneratedQuestionData]]
Sink = Callable[[GeneratedQuestion], None]


class GenerationPipeline:
    """
    One generation run. Not reusable: run() may be called once.

    Progress can be read at any time through progress(); cancel() stops the
    run at the next unit boundary (an in-flight model call is not interrupted).
    """

    def __init__(
        self,
        config: QuestionConfig,
        allocations: Sequence[TopicAllocation],
        store: QuestionStore,
        api_key: Optional[str] = None,
        generate_fn: GenerateFn = generate_question,
        delay_seconds: float = GENERATION_DELAY_SECONDS,
        session: Optional[SessionContext] = None,
    ):
        self.config = config
        self.allocations = list(allocations)
        self.store = store
        self.api_key = api_key
        self.generate_fn = generate_fn
        self.delay_seconds = delay_seconds
        self.session = session if session is not None else SessionContext()

        self.status = RunStatus.NOT_STARTED
        self.current_topic_index = 0
        self.current_question_index = 0
        self.questions: List[GeneratedQuestion] = []
        self.in_flight: Optional[GeneratedQuestion] = None
        self.fatal_error: Optional[str] = None
        self.total_questions = total_quota(self.allocations)
        self._cancel_requested = False
        self._topics = [
            TopicProgress(topic_id=a.topic_id, topic_name=a.topic_name, quota=a.questions_to_generate)
            for a in self.allocations
        ]

    # ── Control ────────────────────────────────────────────────────────────────

    def cancel(self) -> None:
        self._cancel_requested = True

    @property
    def is_finished(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)

    # ── Progress ───────────────────────────────────────────────────────────────

    @property
    def percent(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return len(self.questions) / self.total_questions * 100

    def progress(self) -> GenerationProgress:
        return GenerationProgress(
            status=self.status,
            current_topic_index=self.current_topic_index,
            current_question_index=self.current_question_index,
            total_questions=self.total_questions,
            attempted_questions=len(self.questions),
            percent=self.percent,
            topics=[t.model_copy() for t in self._topics],
            questions=list(self.questions),
            fatal_error=self.fatal_error,
        )

    # ── Run ────────────────────────────────────────────────────────────────────

    async def run(self, sink: Optional[Sink] = None) -> RunStatus:
        """
        Generate every unit of every allocation.

        Returns the terminal status: COMPLETED when all units were attempted,
        CANCELLED when cancel() was honoured, FAILED on a fatal error.
        """
        if self.status != RunStatus.NOT_STARTED:
            raise RuntimeError(f"Pipeline already {self.status.value}")

        self.status = RunStatus.RUNNING
        log.info(
            f"[PIPELINE] Start: {self.total_questions} {self.config.question_type.value} "
            f"questions over {len(self.allocations)} topics"
        )

        try:
            for topic_idx, topic in enumerate(self.allocations):
                self.current_topic_index = topic_idx
                for unit_idx in range(topic.questions_to_generate):
                    if self._cancel_requested:
                        self.status = RunStatus.CANCELLED
                        log.info(f"[PIPELINE] Cancelled after {len(self.questions)} questions")
                        return self.status

                    self.current_question_index = unit_idx
                    question = await self._generate_unit(topic)
                    self._record(topic_idx, question)
                    if sink is not None:
                        sink(question)

                    await asyncio.sleep(self.delay_seconds)
        except asyncio.CancelledError:
            self.status = RunStatus.CANCELLED
            raise
        except Exception as e:
            self.status = RunStatus.FAILED
            self.fatal_error = str(e) or type(e).__name__
            log.exception(
                f"[PIPELINE] Fatal error at topic #{self.current_topic_index} "
                f"unit #{self.current_question_index}: {self.fatal_error}"
            )
            return self.status

        self.status = RunStatus.COMPLETED
        completed = sum(t.completed for t in self._topics)
        log.info(f"[PIPELINE] Done: {completed}/{self.total_questions} completed")
        return self.status

    async def _generate_unit(self, topic: TopicAllocation) -> GeneratedQuestion:
        context = gather_context(self.store, self.config, topic, self.session)
        prompt = build_prompt(
            self.config,
            topic,
            context.topic_notes,
            context.previous_questions,
            context.generated_questions,
            context.session_statements,
        )

        pending = GeneratedQuestion(
            topic_id=topic.topic_id,
            topic_name=topic.topic_name,
            question_type=self.config.question_type,
        )
        self.in_flight = pending
        try:
            data = await self.generate_fn(self.api_key, prompt)
            completed = pending.model_copy(deep=True).mark_completed(data)
            self.store.save_generated_question(completed, self.config)
        except Exception as e:
            error = str(e) or type(e).__name__
            log.warning(
                f"[PIPELINE] '{topic.topic_name}' unit {self.current_question_index + 1}"
                f"/{topic.questions_to_generate} failed: {error}"
            )
            return pending.mark_failed(error)
        finally:
            self.in_flight = None
        return completed

    def _record(self, topic_idx: int, question: GeneratedQuestion) -> None:
        self.questions.append(question)
        if question.status == QuestionStatus.COMPLETED:
            self._topics[topic_idx].completed += 1
            self.session.record(question)
        else:
            self._topics[topic_idx].failed += 1
