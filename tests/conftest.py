"""Shared fixtures for the planmaker test suite."""

import json

import httpx
import pytest

from planmaker.config import AppConfig
from planmaker.clients.clarifier import SpecClarifierClient
from planmaker.clients.planner import SoftwarePlannerClient
from planmaker.stores.answers import AnswerStore
from planmaker.stores.submissions import SubmissionMetadataStore

CLARIFIER_URL = "https://clarifier.test"
PLANNER_URL = "https://planner.test"
JOB_ID = "123e4567-e89b-12d3-a456-426614174000"
PLAN_ID = "9b2f7c1e-8d4a-4f6b-9c3e-2a1b0c9d8e7f"


class Recorder:
    """httpx MockTransport handler that replays queued responses and records requests."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        # Fresh copy so a queued response can be replayed any number of times
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    def json_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def job_response(status: str, job_id: str = JOB_ID, **extra) -> httpx.Response:
    body = {
        "id": job_id,
        "status": status,
        "created_at": "2026-01-01T00:00:00Z",
        "updated_at": "2026-01-01T00:00:05Z",
        **extra,
    }
    return httpx.Response(200, json=body)


@pytest.fixture
def recorder():
    return Recorder([httpx.Response(200, json={})])


@pytest.fixture
def clarifier(recorder):
    http = httpx.Client(transport=httpx.MockTransport(recorder))
    return SpecClarifierClient(CLARIFIER_URL, http_client=http)


@pytest.fixture
def planner(recorder):
    http = httpx.Client(transport=httpx.MockTransport(recorder))
    return SoftwarePlannerClient(PLANNER_URL, http_client=http)


@pytest.fixture
def sleeps():
    """Collects the waits requested by polling; pass `sleep=sleeps.append`."""
    return []


@pytest.fixture
def two_specs():
    """Plan with two specs: spec 0 asks two questions, spec 1 asks one."""
    return [
        {
            "purpose": "Store user data",
            "vision": "Durable, queryable storage",
            "must": ["Persist users"],
            "dont": ["Lose data"],
            "nice": ["Backups"],
            "open_questions": ["Which DB?", "Auth method?"],
            "assumptions": ["Single region"],
        },
        {
            "purpose": "Serve the API",
            "vision": "Fast HTTP layer",
            "open_questions": ["Which framework?"],
        },
    ]


@pytest.fixture
def answer_store():
    return AnswerStore()


@pytest.fixture
def submission_store():
    return SubmissionMetadataStore()


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        software_planner_base_url=PLANNER_URL,
        spec_clarifier_base_url=CLARIFIER_URL,
        storage_dir=str(tmp_path / "store"),
        storage_debounce_seconds=0,
        poll_max_attempts=5,
        poll_interval_seconds=0.01,
    )
