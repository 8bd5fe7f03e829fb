"""SubmissionOrchestrator — validates answers, builds the clarification request and submits it once.

Submission is a single create-job call. Retrying a failed submission is the
caller's decision; status polling for a submitted job goes through the
clarifier client's bounded wait.
"""

import hashlib
import json
import sys

from planmaker.config import AppConfig
from planmaker.errors import LocalValidationError, SubmissionInProgressError
from planmaker.state import (
    SPEC_FIELDS,
    ClarificationConfig,
    ClarificationRequest,
    JobStatusResponse,
    JobSummary,
    QuestionAnswer,
    Specification,
    SubmissionMetadata,
)
from planmaker.clients.clarifier import SpecClarifierClient
from planmaker.stores.answers import AnswerStore
from planmaker.stores.submissions import SubmissionMetadataStore
from planmaker.utils.storage import JsonFileStorage
from planmaker.utils.validators import validate_uuid


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def answers_hash(answers: list[QuestionAnswer]) -> str:
    """SHA-256 of the canonical answers payload; changes whenever any answer changes."""
    canonical = json.dumps(answers, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def build_plan_payload(specs: list[Specification]) -> dict:
    """Pass every spec field through untouched; absent optional fields stay absent."""
    return {"specs": [{name: spec[name] for name in SPEC_FIELDS if name in spec} for spec in specs]}


class SubmissionOrchestrator:
    """Glue between AnswerStore, SpecClarifierClient and SubmissionMetadataStore."""

    def __init__(self, answers: AnswerStore, client: SpecClarifierClient,
                 submissions: SubmissionMetadataStore,
                 poll_max_attempts: int = 60, poll_interval: float = 2.0):
        self.answers = answers
        self.client = client
        self.submissions = submissions
        self.poll_max_attempts = poll_max_attempts
        self.poll_interval = poll_interval
        self._in_flight: set[str] = set()

    @classmethod
    def from_config(cls, config: AppConfig, client: SpecClarifierClient | None = None,
                    namespace: str | None = None):
        """Wire stores and client from config; persistence follows the persist_* flags.

        namespace keeps one caller's saved drafts and metadata apart from another's
        in the same storage directory.
        """
        storage = JsonFileStorage(
            config.storage_path, prefix=f"planmaker_{namespace}" if namespace else "planmaker"
        )
        answers = AnswerStore(
            storage=storage if config.persist_answers else None,
            debounce=config.storage_debounce_seconds,
            max_age=config.draft_expiry_hours * 3600,
        )
        submissions = SubmissionMetadataStore(
            storage=storage if config.persist_submissions else None,
            debounce=config.storage_debounce_seconds,
            expiry_seconds=config.submission_expiry_days * 86400,
        )
        return cls(
            answers,
            client or SpecClarifierClient.from_config(config),
            submissions,
            poll_max_attempts=config.poll_max_attempts,
            poll_interval=config.poll_interval_seconds,
        )

    def is_submitting(self, plan_id: str) -> bool:
        return plan_id in self._in_flight

    def build_answers(self, plan_id: str, specs: list[Specification]) -> list[QuestionAnswer]:
        """One entry per declared open question, in spec then question order, answers trimmed."""
        entries: list[QuestionAnswer] = []
        for spec_index, spec in enumerate(specs):
            for question_index, question in enumerate(spec.get("open_questions") or []):
                entries.append({
                    "spec_index": spec_index,
                    "question_index": question_index,
                    "question": question,
                    "answer": self.answers.get_answer(plan_id, spec_index, question_index).strip(),
                })
        return entries

    def submit(self, plan_id: str, specs: list[Specification],
               config: ClarificationConfig | None = None) -> JobSummary:
        """Validate, build and submit a clarification request for plan_id.

        Raises:
            SubmissionInProgressError: a submission for this plan is still running.
            LocalValidationError: some open questions are unanswered (no request is sent).
            RemoteRequestError / NetworkError: the create-job call failed (not retried).
        """
        if plan_id in self._in_flight:
            raise SubmissionInProgressError(
                f"A clarification submission for plan {plan_id} is already in progress."
            )

        result = self.answers.validate_answers(plan_id, specs)
        if not result["is_valid"]:
            count = result["unanswered_count"]
            raise LocalValidationError(
                f"Not ready to submit: {_plural(count, 'question')} still "
                f"{'needs' if count == 1 else 'need'} answers.",
                result=result,
            )

        answers = self.build_answers(plan_id, specs)
        request: ClarificationRequest = {
            "plan": build_plan_payload(specs),
            "answers": answers,
        }
        if config is not None:
            request["config"] = config

        self._in_flight.add(plan_id)
        try:
            summary = self.client.clarify_specs(request)
        except Exception as exc:
            print(f"[planmaker] Clarification submission for plan {plan_id} failed: {exc}",
                  file=sys.stderr)
            raise
        finally:
            self._in_flight.discard(plan_id)

        self.submissions.record(plan_id, summary["id"], answers_hash=answers_hash(answers))
        print(f"[planmaker] Clarification job {summary['id']} created for plan {plan_id}.",
              file=sys.stderr)
        return summary

    def latest_submission(self, plan_id: str) -> SubmissionMetadata | None:
        return self.submissions.get(plan_id)

    def answers_changed_since_submission(self, plan_id: str, specs: list[Specification]) -> bool:
        """True if the current answers differ from the ones last submitted for plan_id."""
        metadata = self.submissions.get(plan_id)
        if metadata is None or "answers_hash" not in metadata:
            return True
        return metadata["answers_hash"] != answers_hash(self.build_answers(plan_id, specs))

    def track_job(self, plan_id: str, job_id: str) -> SubmissionMetadata:
        """Start tracking an existing clarification job for plan_id."""
        return self.submissions.record(plan_id, validate_uuid(job_id.strip()))

    def _recorded_job_id(self, plan_id: str) -> str:
        metadata = self.submissions.get(plan_id)
        if metadata is None:
            raise LookupError(f"No clarification job recorded for plan {plan_id}.")
        return metadata["job_id"]

    def check_status(self, plan_id: str) -> JobStatusResponse:
        """One status call for the plan's recorded job."""
        return self.client.get_clarifier_status(self._recorded_job_id(plan_id))

    def wait_for_result(self, plan_id: str, **poll_options) -> JobStatusResponse:
        """Poll the plan's recorded job until it is terminal.

        poll_options are forwarded to wait_for_clarification; max_attempts and
        interval default to the orchestrator's configured values.
        """
        poll_options.setdefault("max_attempts", self.poll_max_attempts)
        poll_options.setdefault("interval", self.poll_interval)
        return self.client.wait_for_clarification(self._recorded_job_id(plan_id), **poll_options)
