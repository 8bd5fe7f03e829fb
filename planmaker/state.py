"""Typed records exchanged between the stores, the clients and the front ends."""

from typing import Literal, NotRequired, TypedDict

ClarifierStatus = Literal["PENDING", "RUNNING", "SUCCESS", "FAILED"]
PlannerStatus = Literal["QUEUED", "RUNNING", "SUCCEEDED", "FAILED"]


class Specification(TypedDict):
    purpose: str
    vision: str
    must: NotRequired[list[str]]
    dont: NotRequired[list[str]]
    nice: NotRequired[list[str]]
    open_questions: NotRequired[list[str]]  # Answerable items, index-addressed.
    assumptions: NotRequired[list[str]]


SPEC_FIELDS = ("purpose", "vision", "must", "dont", "nice", "open_questions", "assumptions")


class QuestionError(TypedDict):
    spec_index: int
    question_index: int
    question: str
    error: str


class ValidationResult(TypedDict):
    is_valid: bool
    total_questions: int
    unanswered_count: int
    errors: list[QuestionError]
    unanswered_by_spec: dict[int, list[int]]


class QuestionAnswer(TypedDict):
    spec_index: int
    question_index: int
    question: str
    answer: str


class ClarificationConfig(TypedDict, total=False):
    provider: Literal["openai", "anthropic", "dummy"] | None
    model: str | None
    system_prompt_id: str | None
    temperature: float | None
    max_tokens: int | None


class ClarificationRequest(TypedDict):
    plan: dict  # {"specs": [Specification, ...]}
    answers: list[QuestionAnswer]
    config: NotRequired[ClarificationConfig | None]


class JobSummary(TypedDict):
    id: str
    status: ClarifierStatus
    created_at: str
    updated_at: str
    last_error: NotRequired[str | None]


class JobStatusResponse(JobSummary):
    result: NotRequired[dict | None]  # ClarifiedPlan; visibility is server-controlled.


class SubmissionMetadata(TypedDict):
    job_id: str
    submitted_at: str  # ISO-8601
    answers_hash: NotRequired[str]


class AsyncPlanJob(TypedDict):
    job_id: str
    status: PlannerStatus


class PlanJobStatus(TypedDict):
    job_id: str
    status: PlannerStatus
    created_at: str
    updated_at: str
    result: NotRequired[dict | None]  # {"specs": [...]}
    error: NotRequired[dict | None]


class PlanJobsList(TypedDict):
    jobs: list[PlanJobStatus]
    total: int
    limit: int
