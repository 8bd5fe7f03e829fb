"""Spec Clarifier client — create clarification jobs, read their status, poll to completion."""

import threading
import time
from typing import Callable

import httpx

from planmaker.config import AppConfig
from planmaker.errors import DebugDisabledError
from planmaker.state import ClarificationRequest, JobStatusResponse, JobSummary
from planmaker.clients.base import ServiceClient
from planmaker.utils.polling import PollingPolicy
from planmaker.utils.status import is_terminal_clarifier_status
from planmaker.utils.validators import validate_uuid

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_INTERVAL = 2.0


class SpecClarifierClient(ServiceClient):
    """Client for the Spec Clarifier service (/v1/clarifications)."""

    error_fields = ("detail", "error")

    @classmethod
    def from_config(cls, config: AppConfig, http_client: httpx.Client | None = None):
        return cls(
            config.spec_clarifier_base_url,
            api_key=config.spec_clarifier_api_key,
            http_client=http_client,
            timeout=config.request_timeout_seconds,
        )

    def clarify_specs(self, request: ClarificationRequest) -> JobSummary:
        """Create an asynchronous clarification job.

        The request is sent as-is: specifications are never rewritten here.
        Returns the job summary immediately; the result arrives via status calls.
        """
        return self._request(
            "POST", "/v1/clarifications", "Failed to create clarification job", json_body=request
        )

    def get_clarifier_status(self, job_id: str) -> JobStatusResponse:
        """Fetch a job's current status (and result, if the server exposes it)."""
        validate_uuid(job_id)
        return self._request(
            "GET", f"/v1/clarifications/{job_id}", "Failed to get clarification status"
        )

    def get_clarifier_debug(self, job_id: str) -> dict:
        """Fetch debug details for a job.

        Raises DebugDisabledError on 403, which this deployment uses to signal
        that the debug endpoint is turned off.
        """
        validate_uuid(job_id)
        response = self._send("GET", f"/v1/clarifications/{job_id}/debug")
        if response.status_code == 403:
            raise DebugDisabledError(
                "Debug endpoint is disabled. Enable it on the clarifier service to inspect jobs.",
                status_code=403,
                body=response.text,
            )
        self._raise_for_status(response, "Failed to get clarification debug info")
        return response.json()

    def get_defaults(self) -> dict:
        """Return the service's default ClarificationConfig and allowed models per provider."""
        return self._request("GET", "/v1/config/defaults", "Failed to get clarifier defaults")

    def wait_for_clarification(
        self,
        job_id: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> JobStatusResponse:
        """Poll a job until it reaches SUCCESS or FAILED.

        Args:
            job_id: Clarification job UUID.
            max_attempts: Total status calls allowed, including the first.
            interval: Seconds between attempts; no wait follows the last one.
            cancel_event: When set, polling stops with PollingAbortedError.
            sleep: Injected for tests.

        Errors from non-final attempts are treated as transient and swallowed;
        the final attempt's error is raised unchanged. Raises
        PollingExhaustedError if no terminal status was seen.
        """
        policy = PollingPolicy(
            max_attempts=max_attempts,
            interval=interval,
            is_terminal=is_terminal_clarifier_status,
            sleep=sleep,
            label="Clarification job",
            cancel_event=cancel_event,
        )
        return policy.run(lambda: self.get_clarifier_status(job_id))
