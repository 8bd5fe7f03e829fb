"""Status display metadata for planner jobs, clarifier jobs and individual questions."""

from typing import TypedDict


class StatusMetadata(TypedDict):
    label: str
    description: str
    progress: int  # 0-100


PLANNER_STATUS_MAP = {
    "QUEUED": {"label": "Queued", "description": "Job is waiting to be processed", "progress": 0},
    "RUNNING": {"label": "Running", "description": "Job is currently being processed", "progress": 50},
    "SUCCEEDED": {"label": "Succeeded", "description": "Job completed successfully", "progress": 100},
    "FAILED": {"label": "Failed", "description": "Job failed to complete", "progress": 100},
}

CLARIFIER_STATUS_MAP = {
    "PENDING": {"label": "Pending", "description": "Job is queued and waiting to start", "progress": 0},
    "RUNNING": {"label": "Running", "description": "Job is currently being clarified", "progress": 50},
    "SUCCESS": {"label": "Success", "description": "Clarification completed successfully", "progress": 100},
    "FAILED": {"label": "Failed", "description": "Clarification failed with an error", "progress": 100},
}

QUESTION_STATUS_MAP = {
    "unanswered": {"label": "Unanswered", "description": "This question needs an answer", "progress": 0},
    "answered": {"label": "Answered", "description": "This question has been answered", "progress": 100},
    "complete": {"label": "Complete", "description": "All questions answered", "progress": 100},
}

PLANNER_TERMINAL = frozenset({"SUCCEEDED", "FAILED"})
CLARIFIER_TERMINAL = frozenset({"SUCCESS", "FAILED"})


def _lookup(table: dict, status: str) -> StatusMetadata:
    if status in table:
        return dict(table[status])
    # Fallback for unknown statuses
    return {"label": "Unknown", "description": f"Status: {status}", "progress": 0}


def get_planner_status_metadata(status: str) -> StatusMetadata:
    return _lookup(PLANNER_STATUS_MAP, status)


def get_clarifier_status_metadata(status: str) -> StatusMetadata:
    return _lookup(CLARIFIER_STATUS_MAP, status)


def get_question_status_metadata(status: str) -> StatusMetadata:
    return _lookup(QUESTION_STATUS_MAP, status)


def is_terminal_clarifier_status(response) -> bool:
    """True if a clarifier status response (or bare status string) is SUCCESS or FAILED."""
    status = response.get("status") if isinstance(response, dict) else response
    return status in CLARIFIER_TERMINAL


def is_terminal_planner_status(response) -> bool:
    """True if a planner job response (or bare status string) is SUCCEEDED or FAILED."""
    status = response.get("status") if isinstance(response, dict) else response
    return status in PLANNER_TERMINAL
