"""Software Planner client — synchronous and job-based plan creation, plan lookup and listing."""

import threading
import time
from typing import Callable

import httpx

from planmaker.config import AppConfig
from planmaker.state import AsyncPlanJob, PlanJobStatus, PlanJobsList
from planmaker.clients.base import ServiceClient
from planmaker.utils.polling import PollingPolicy
from planmaker.utils.status import is_terminal_planner_status
from planmaker.utils.validators import validate_description, validate_limit, validate_uuid

DEFAULT_LIST_LIMIT = 25
MAX_LIST_LIMIT = 100


class SoftwarePlannerClient(ServiceClient):
    """Client for the Software Planner service (/api/v1/plan, /api/v1/plans)."""

    error_fields = ("error", "detail")

    def __init__(self, base_url: str, api_key: str | None = None,
                 http_client: httpx.Client | None = None, timeout: float = 30.0,
                 list_limit_default: int = DEFAULT_LIST_LIMIT,
                 list_limit_max: int = MAX_LIST_LIMIT):
        super().__init__(base_url, api_key=api_key, http_client=http_client, timeout=timeout)
        self.list_limit_default = list_limit_default
        self.list_limit_max = list_limit_max

    @classmethod
    def from_config(cls, config: AppConfig, http_client: httpx.Client | None = None):
        return cls(
            config.software_planner_base_url,
            api_key=config.software_planner_api_key,
            http_client=http_client,
            timeout=config.request_timeout_seconds,
            list_limit_default=config.planner_list_limit_default,
            list_limit_max=config.planner_list_limit_max,
        )

    @staticmethod
    def _plan_request(description: str, model: str | None, system_prompt: str | None) -> dict:
        body = {"description": validate_description(description)}
        if model:
            body["model"] = model
        if system_prompt:
            body["system_prompt"] = system_prompt
        return body

    def create_plan(self, description: str, model: str | None = None,
                    system_prompt: str | None = None) -> dict:
        """Generate a plan synchronously. Returns {"specs": [...]}."""
        body = self._plan_request(description, model, system_prompt)
        return self._request("POST", "/api/v1/plan", "Failed to create plan", json_body=body)

    def create_plan_async(self, description: str, model: str | None = None,
                          system_prompt: str | None = None) -> AsyncPlanJob:
        """Start a planning job. Returns {"job_id", "status"}."""
        body = self._plan_request(description, model, system_prompt)
        return self._request("POST", "/api/v1/plans", "Failed to create async plan", json_body=body)

    def get_plan(self, job_id: str) -> PlanJobStatus:
        """Fetch a planning job, including its specs once it has SUCCEEDED."""
        validate_uuid(job_id)
        return self._request("GET", f"/api/v1/plans/{job_id}", "Failed to get plan status")

    def list_plans(self, limit: int | None = None, cursor: str | None = None) -> PlanJobsList:
        """List recent planning jobs.

        limit defaults to list_limit_default and may not exceed list_limit_max;
        out-of-range values raise InputFormatError before any request.
        """
        effective = validate_limit(
            self.list_limit_default if limit is None else limit, self.list_limit_max
        )
        params = {"limit": str(effective)}
        if cursor:
            params["cursor"] = cursor
        return self._request("GET", "/api/v1/plans", "Failed to list plans", params=params)

    def wait_for_plan(
        self,
        job_id: str,
        max_attempts: int = 60,
        interval: float = 2.0,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> PlanJobStatus:
        """Poll a planning job until SUCCEEDED or FAILED (same protocol as clarification polling)."""
        validate_uuid(job_id)
        policy = PollingPolicy(
            max_attempts=max_attempts,
            interval=interval,
            is_terminal=is_terminal_planner_status,
            sleep=sleep,
            label="Planning job",
            cancel_event=cancel_event,
        )
        return policy.run(lambda: self.get_plan(job_id))
