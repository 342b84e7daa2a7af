"""FastAPI server that exposes question generation and grading endpoints."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
import uvicorn

from exam_app.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.exam_manager import ExamManager
from exam_app.core.grader import feedback_message
from exam_app.core.markdown_math_renderer import renderer
from exam_app.core.models import (
    BranchCode,
    DeltaCase,
    LevelAAnswer,
    LevelBAnswer,
    LevelCAnswer,
    QuestionData,
    ReasonCode,
    StudentAnswer,
    Submission,
)
from exam_app.core.question_exporter import answer_to_dict, grading_result_to_dict, question_to_dict


class QuestionRequest(BaseModel):
    """Payload schema for generating a question."""

    level: Literal["A", "B", "C"]
    seed: str | None = None
    b_variant: Literal["segment-x"] | None = None
    exam_key: str | None = None
    learner: str | None = None
    slot: int | None = None


class LevelAPayload(BaseModel):
    level: Literal["A"]
    delta_sign: DeltaCase | None = None
    hit: bool | None = None

    def to_answer(self) -> StudentAnswer:
        return LevelAAnswer(delta_sign=self.delta_sign, hit=self.hit)


class LevelBPayload(BaseModel):
    level: Literal["B"]
    branch: BranchCode | None = None
    hit: bool | None = None
    x_to_check: float | None = None
    x_threshold: float | None = None
    explanation: str | None = None

    def to_answer(self) -> StudentAnswer:
        return LevelBAnswer(
            branch=self.branch,
            hit=self.hit,
            x_to_check=self.x_to_check,
            x_threshold=self.x_threshold,
            explanation=self.explanation,
        )


class LevelCPayload(BaseModel):
    level: Literal["C"]
    first_sphere_index: int | None = None
    t: float | None = None
    reason_code: ReasonCode | None = None
    tie_break_justification: str | None = None
    evaluation_explanation: str | None = None

    def to_answer(self) -> StudentAnswer:
        return LevelCAnswer(
            first_sphere_index=self.first_sphere_index,
            t=self.t,
            reason_code=self.reason_code,
            tie_break_justification=self.tie_break_justification,
            evaluation_explanation=self.evaluation_explanation,
        )


AnswerPayload = Annotated[Union[LevelAPayload, LevelBPayload, LevelCPayload], Field(discriminator="level")]


class SubmissionPayload(BaseModel):
    """Payload schema for submitted answers."""

    learner: str = Field(min_length=1)
    answer: AnswerPayload


def _get_exam_manager_dependency(exam_manager: ExamManager):
    def dependency() -> ExamManager:
        return exam_manager

    return dependency


def _question_payload(question: QuestionData) -> dict[str, object]:
    payload = question_to_dict(question)
    payload["prompt_html"] = renderer.render_meta(question.meta)
    return payload


def _submission_payload(submission: Submission) -> dict[str, object]:
    return {
        "question_id": submission.question_id,
        "learner": submission.learner,
        "submitted_at": submission.submitted_at.isoformat(),
        "answer": answer_to_dict(submission.answer),
        "grading": grading_result_to_dict(submission.grading),
        "feedback": feedback_message(submission.grading),
    }


def _lookup(manager: ExamManager, question_id: int) -> QuestionData:
    try:
        return manager.get_question(question_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Question {question_id} not found") from exc


def create_api_app(exam_manager: ExamManager) -> FastAPI:
    """Create a FastAPI application wired to the provided exam manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    exam_manager_dep = _get_exam_manager_dependency(exam_manager)

    @app.post("/questions", status_code=201)
    def create_question(
        payload: QuestionRequest,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            if payload.exam_key and payload.learner and payload.slot is not None:
                question = manager.create_question_for_learner(
                    payload.exam_key,
                    payload.learner,
                    payload.slot,
                    payload.level,
                    b_variant=payload.b_variant,
                )
            else:
                question = manager.create_question(payload.level, seed=payload.seed, b_variant=payload.b_variant)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _question_payload(question)

    @app.get("/questions")
    def list_questions(manager: ExamManager = Depends(exam_manager_dep)) -> list[dict[str, object]]:
        return [_question_payload(question) for question in manager.get_questions()]

    @app.get("/questions/{question_id}")
    def get_question(question_id: int, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        return _question_payload(_lookup(manager, question_id))

    @app.get("/questions/{question_id}/document", response_class=HTMLResponse)
    def get_question_document(question_id: int, manager: ExamManager = Depends(exam_manager_dep)) -> str:
        return renderer.render_meta_document(_lookup(manager, question_id).meta)

    @app.post("/questions/{question_id}/answers", status_code=201)
    def submit_answer(
        question_id: int,
        payload: SubmissionPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            submission = manager.submit_answer(question_id, payload.learner, payload.answer.to_answer())
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Question {question_id} not found") from exc
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _submission_payload(submission)

    @app.get("/questions/{question_id}/submissions")
    def list_submissions(
        question_id: int,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> list[dict[str, object]]:
        try:
            submissions = manager.get_submissions(question_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Question {question_id} not found") from exc
        return [_submission_payload(submission) for submission in submissions]

    @app.get("/scoreboard")
    def get_scoreboard(
        limit: Annotated[int, Query(ge=0)] = 3,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> list[dict[str, object]]:
        return [
            {
                "learner": row.learner,
                "total_score": row.total_score,
                "attempts": row.attempts,
                "full_marks": row.full_marks,
            }
            for row in manager.get_top_scorers(limit)
        ]

    return app


def run_api_server(
    exam_manager: ExamManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(exam_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    uvicorn.Server(config).run()
