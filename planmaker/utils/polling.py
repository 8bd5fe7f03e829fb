"""Retry policy for job polling, built on tenacity and independent of any I/O call.

A policy bounds the number of attempts, waits a fixed interval between
attempts, retries errors it considers transient and keeps going until the
observed result is terminal. The sleep function is injectable so tests never
wait in real time.
"""

import math
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from planmaker.errors import (
    InputFormatError,
    PollingAbortedError,
    PollingExhaustedError,
    RemoteRequestError,
)
from planmaker.utils.validators import validate_positive


def is_transient_poll_error(exc: BaseException) -> bool:
    """Return True for failures worth another polling attempt.

    Local input errors and cancellation are final. Everything else that the
    status call raises (HTTP errors, network failures) is retried.
    """
    if isinstance(exc, (InputFormatError, PollingAbortedError)):
        return False
    return isinstance(exc, Exception)


def _describe(outcome_value: Any) -> str:
    if isinstance(outcome_value, dict) and "status" in outcome_value:
        return f"status {outcome_value['status']}"
    return repr(outcome_value)


@dataclass
class PollingPolicy:
    """Bounded, sequential polling with transient-error tolerance.

    Attributes:
        max_attempts: Total number of calls, including the first.
        interval: Seconds to wait between non-final attempts.
        is_terminal: Predicate on a call's result; True stops polling.
        is_transient: Predicate on a raised error; True retries it.
        sleep: Called with the interval between attempts.
        label: Name used in log lines and the exhaustion message.
    """

    max_attempts: int
    interval: float
    is_terminal: Callable[[Any], bool]
    is_transient: Callable[[BaseException], bool] = is_transient_poll_error
    sleep: Callable[[float], None] = time.sleep
    label: str = "Job"
    exhausted_hint: str = "Please check the job status or increase max_attempts if needed."
    cancel_event: threading.Event | None = field(default=None)

    def __post_init__(self):
        validate_positive("max_attempts", self.max_attempts)
        validate_positive("interval", self.interval)

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PollingAbortedError(f"{self.label} polling was aborted.")

    def _sleep(self, seconds: float) -> None:
        self._check_cancelled()
        self.sleep(seconds)

    def _on_stop(self, retry_state: RetryCallState):
        outcome = retry_state.outcome
        if outcome.failed:
            # Last attempt's error surfaces unchanged.
            raise outcome.exception()
        attempts = retry_state.attempt_number
        raise PollingExhaustedError(
            f"{self.label} did not complete within {self.max_attempts:g} attempts. {self.exhausted_hint}",
            attempts=attempts,
        )

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome.failed:
            reason = f"transient error {outcome.exception()!r}"
        else:
            reason = _describe(outcome.result())
        print(
            f"[planmaker] {self.label}: {reason}. "
            f"Polling again in {retry_state.next_action.sleep:g}s "
            f"(attempt {retry_state.attempt_number}/{self.max_attempts})...",
            file=sys.stderr,
        )

    def run(self, fn: Callable[[], Any]) -> Any:
        """Call fn until it returns a terminal result, the budget runs out, or it is cancelled.

        Raises:
            PollingExhaustedError: no terminal result within max_attempts calls.
            PollingAbortedError: cancel_event was set before an attempt or a wait.
            Exception: the final attempt's error, or any non-transient error.
        """

        def _attempt():
            self._check_cancelled()
            return fn()

        retrying = Retrying(
            stop=stop_after_attempt(math.ceil(self.max_attempts)),
            wait=wait_fixed(self.interval),
            retry=(
                retry_if_exception(self.is_transient)
                | retry_if_result(lambda result: not self.is_terminal(result))
            ),
            sleep=self._sleep,
            before_sleep=self._before_sleep,
            retry_error_callback=self._on_stop,
        )
        return retrying(_attempt)
