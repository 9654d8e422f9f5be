"""
Generation Router — /generation

Orchestrates topic allocation and the sequential question generation pipeline.
Endpoints:
  POST /generation/allocations         — preview the per-topic allocation
  POST /generation/runs                — allocate and start a generation run
  GET  /generation/runs                — recent runs (persisted records)
  GET  /generation/runs/{id}           — live progress of a run
  POST /generation/runs/{id}/cancel    — stop a run at the next question
  GET  /generation/questions           — generated questions
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import crud
from database import schemas as db_schemas
from database.database import get_db, SessionLocal
from generation.schemas import (
    GenerationRequest, AllocationPreviewResponse, StartRunResponse, RunProgressResponse,
    QuestionConfig, RunStatus,
)
from generation.topic_allocator import NoEligibleTopicsError, total_quota
from services.generation_runs import RunRegistry, plan_generation

router = APIRouter(prefix="/generation", tags=["generation"])

# Use Python's standard logger so output appears in the uvicorn console
log = logging.getLogger("generation.pipeline")

_registry: Optional[RunRegistry] = None


def get_run_registry() -> RunRegistry:
    """Process-wide run registry (dependency; overridden in tests)."""
    global _registry
    if _registry is None:
        _registry = RunRegistry(session_factory=SessionLocal)
    return _registry


def _plan_or_422(db: Session, config: QuestionConfig):
    try:
        return plan_generation(db, config)
    except NoEligibleTopicsError as e:
        log.info(f"[ALLOCATE] No eligible topics for course={config.course_id} type={config.question_type.value}")
        raise HTTPException(status_code=422, detail=str(e))


def _check_selection(db: Session, config: QuestionConfig) -> None:
    course = crud.get_course(db, config.course_id)
    if not course:
        raise HTTPException(status_code=404, detail=f"Course {config.course_id} not found")
    if course.exam_id != config.exam_id:
        raise HTTPException(
            status_code=422,
            detail=f"Course {config.course_id} does not belong to exam {config.exam_id}",
        )


# ─── Allocation preview ────────────────────────────────────────────────────────

@router.post("/allocations", response_model=AllocationPreviewResponse)
def preview_allocations(
    request: GenerationRequest,
    db: Session = Depends(get_db),
):
    """
    **Dry-run: show how many questions each topic would get.**

    Topics are weighted by their number of historical questions matching the
    question type / slot / part. Quotas always add up to number_of_questions.
    """
    config = request.config
    _check_selection(db, config)
    allocations = _plan_or_422(db, config)
    return AllocationPreviewResponse(
        config=config,
        total_questions=total_quota(allocations),
        allocations=allocations,
    )


# ─── Runs ──────────────────────────────────────────────────────────────────────

@router.post("/runs", response_model=StartRunResponse, status_code=202)
async def start_run(
    request: GenerationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    registry: RunRegistry = Depends(get_run_registry),
):
    """
    **Allocate and start generating.**

    Returns immediately with the run id; poll GET /generation/runs/{run_id}
    for progress. Questions are generated one at a time and saved as they complete.
    """
    config = request.config
    _check_selection(db, config)
    allocations = _plan_or_422(db, config)

    run_id = registry.create(db, config, allocations, api_key=request.api_key)
    background_tasks.add_task(registry.execute, run_id)
    log.info(f"[RUN {run_id}] Queued: {config.number_of_questions} questions, {len(allocations)} topics")

    return StartRunResponse(
        run_id=run_id,
        status=RunStatus.RUNNING,
        total_questions=total_quota(allocations),
        allocations=allocations,
    )


@router.get("/runs", response_model=List[db_schemas.GenerationRunResponse])
def list_runs(
    course_id: Optional[int] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List recent generation runs (persisted records, newest first)."""
    return crud.list_generation_runs(db, course_id=course_id, limit=limit)


@router.get("/runs/{run_id}", response_model=RunProgressResponse)
def get_run_progress(
    run_id: int,
    registry: RunRegistry = Depends(get_run_registry),
):
    """
    Live progress of a run started by this process: overall percentage,
    current topic / question, per-topic completed vs failed, and every
    question produced so far in generation order.
    """
    pipeline = registry.get(run_id)
    if pipeline is None:
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")

    progress = pipeline.progress()
    metadata = {}
    if pipeline.allocations and not pipeline.is_finished:
        current = pipeline.allocations[progress.current_topic_index]
        metadata = {
            "current_topic_name": current.topic_name,
            "current_topic_quota": current.questions_to_generate,
        }
    return RunProgressResponse(run_id=run_id, config=pipeline.config, progress=progress, metadata=metadata)


@router.post("/runs/{run_id}/cancel")
def cancel_run(
    run_id: int,
    registry: RunRegistry = Depends(get_run_registry),
):
    """Ask a run to stop before its next question."""
    if not registry.cancel(run_id):
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
    log.info(f"[RUN {run_id}] Cancel requested")
    return {"run_id": run_id, "cancel_requested": True}


# ─── Generated questions ───────────────────────────────────────────────────────

@router.get("/questions", response_model=List[db_schemas.NewQuestionResponse])
def list_generated_questions(
    topic_id: Optional[int] = Query(None),
    question_type: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """List generated questions, newest first."""
    return crud.list_new_questions(db, topic_id=topic_id, question_type=question_type, skip=skip, limit=limit)
