"""AnswerStore — per-question answers keyed by (plan, spec index, question index).

Answers are stored verbatim; trimming happens only when they are validated or
submitted. Only one plan's answers are kept at a time: answering a question
for a different plan drops the previous plan's answers.
"""

import sys
from typing import Callable

from planmaker.state import QuestionError, Specification, ValidationResult
from planmaker.utils.storage import DebouncedWriter, JsonFileStorage

AnswerKey = tuple[str, int, int]

UNANSWERED_ERROR = "This question requires an answer."
STORAGE_KEY = "plan-answers"


class AnswerStore:
    """In-memory answer map with observers and optional debounced persistence.

    Args:
        storage: When given, answers are restored from and saved to it.
        debounce: Seconds to coalesce writes; 0 writes on every mutation.
        max_age: Saved answers older than this many seconds are ignored.
    """

    def __init__(self, storage: JsonFileStorage | None = None, debounce: float = 0.0,
                 max_age: float | None = None, storage_key: str = STORAGE_KEY):
        self._answers: dict[AnswerKey, str] = {}
        self._current_plan_id: str | None = None
        self._subscribers: list[Callable[["AnswerStore"], None]] = []
        self._storage = storage
        self._storage_key = storage_key
        self._writer: DebouncedWriter | None = None

        if storage is not None:
            self._answers = _decode(storage.load(storage_key, max_age=max_age))
            if self._answers:
                self._current_plan_id = next(iter(self._answers))[0]
            self._writer = DebouncedWriter(debounce, self._save)

    # --- Queries ---

    @property
    def current_plan_id(self) -> str | None:
        return self._current_plan_id

    def get_answer(self, plan_id: str, spec_index: int, question_index: int) -> str:
        return self._answers.get((plan_id, spec_index, question_index), "")

    def is_answered(self, plan_id: str, spec_index: int, question_index: int) -> bool:
        return bool(self.get_answer(plan_id, spec_index, question_index).strip())

    def get_answers_for_plan(self, plan_id: str) -> dict[tuple[int, int], str]:
        return {
            (spec_index, question_index): text
            for (pid, spec_index, question_index), text in self._answers.items()
            if pid == plan_id
        }

    def validate_answers(self, plan_id: str, specs: list[Specification]) -> ValidationResult:
        """Check every declared open question of every spec for a non-blank answer.

        Specs without open questions contribute nothing; a plan with no
        questions at all is valid. The result is recomputed on every call.
        """
        total = 0
        errors: list[QuestionError] = []
        unanswered_by_spec: dict[int, list[int]] = {}

        for spec_index, spec in enumerate(specs):
            for question_index, question in enumerate(spec.get("open_questions") or []):
                total += 1
                if self.is_answered(plan_id, spec_index, question_index):
                    continue
                errors.append({
                    "spec_index": spec_index,
                    "question_index": question_index,
                    "question": question,
                    "error": UNANSWERED_ERROR,
                })
                unanswered_by_spec.setdefault(spec_index, []).append(question_index)

        return {
            "is_valid": not errors,
            "total_questions": total,
            "unanswered_count": len(errors),
            "errors": errors,
            "unanswered_by_spec": unanswered_by_spec,
        }

    # --- Mutations ---

    def set_answer(self, plan_id: str, spec_index: int, question_index: int, text: str) -> None:
        """Record raw answer text. Indices are not checked against any spec."""
        if self._current_plan_id is not None and self._current_plan_id != plan_id:
            self._answers = {k: v for k, v in self._answers.items() if k[0] == plan_id}
        self._current_plan_id = plan_id
        self._answers[(plan_id, spec_index, question_index)] = text
        self._changed()

    def clear_answers(self, plan_id: str) -> None:
        self._answers = {k: v for k, v in self._answers.items() if k[0] != plan_id}
        if self._current_plan_id == plan_id:
            self._current_plan_id = None
        self._changed()

    def reset(self) -> None:
        """Drop every answer for every plan (session reset)."""
        self._answers = {}
        self._current_plan_id = None
        self._changed()

    # --- Observers ---

    def subscribe(self, callback: Callable[["AnswerStore"], None]) -> Callable[[], None]:
        """Register callback(store) for every mutation. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def flush(self) -> None:
        """Write any pending persisted state immediately."""
        if self._writer is not None:
            self._writer.flush()

    def close(self) -> None:
        self.flush()
        if self._writer is not None:
            self._writer.dispose()

    def _changed(self) -> None:
        if self._writer is not None:
            self._writer.schedule(_encode(self._answers))
        for callback in list(self._subscribers):
            callback(self)

    def _save(self, records: list[dict]) -> None:
        if records:
            self._storage.save(self._storage_key, records)
        else:
            self._storage.remove(self._storage_key)


def _encode(answers: dict[AnswerKey, str]) -> list[dict]:
    return [
        {"plan_id": plan_id, "spec_index": spec_index, "question_index": question_index, "answer": text}
        for (plan_id, spec_index, question_index), text in answers.items()
    ]


def _decode(records) -> dict[AnswerKey, str]:
    if not isinstance(records, list):
        return {}
    answers: dict[AnswerKey, str] = {}
    skipped = 0
    for record in records:
        try:
            key = (str(record["plan_id"]), int(record["spec_index"]), int(record["question_index"]))
            text = record["answer"]
        except (KeyError, TypeError, ValueError):
            skipped += 1
            continue
        if not isinstance(text, str):
            skipped += 1
            continue
        answers[key] = text
    if skipped:
        print(f"[planmaker] Warning: dropped {skipped} malformed saved answer(s).", file=sys.stderr)
    return answers
