"""Shared HTTP plumbing for the planner and clarifier clients."""

import re

import httpx

from planmaker.errors import NetworkError, RemoteRequestError

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")

ERROR_BODY_EXCERPT = 100


def sanitize_header_value(value: str) -> str:
    """Strip control characters (CR, LF, NUL, tabs...) that could enable header injection."""
    return _CONTROL_CHARS_RE.sub("", value)


def create_headers(additional: dict[str, str] | None = None) -> dict[str, str]:
    """Build request headers: JSON content type plus sanitized extras."""
    headers = {"Content-Type": "application/json"}
    for key, value in (additional or {}).items():
        headers[key] = sanitize_header_value(value)
    return headers


def extract_error_message(response: httpx.Response, fields: tuple[str, ...]) -> str:
    """Derive a display message from a failed response.

    Prefers the first string-valued field from `fields` in a JSON body, then a
    truncated excerpt of the raw body, then a bare status-code message.
    """
    message = f"Request failed with status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        text = response.text
        if text:
            message = f"{message}: {text[:ERROR_BODY_EXCERPT]}"
        return message

    if isinstance(body, dict):
        for name in fields:
            value = body.get(name)
            if isinstance(value, str) and value:
                return value
    return message


class ServiceClient:
    """Base for a JSON-over-HTTP service client.

    Args:
        base_url: Service root, without trailing slash.
        api_key: Optional key sent as the x-api-key header.
        http_client: Injected httpx.Client (tests pass one with a MockTransport).
        timeout: Per-request timeout in seconds when no client is injected.
    """

    error_fields: tuple[str, ...] = ("detail", "error")

    def __init__(self, base_url: str, api_key: str | None = None,
                 http_client: httpx.Client | None = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._http = http_client or httpx.Client(timeout=timeout)
        self._owns_http = http_client is None

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _headers(self) -> dict[str, str]:
        return create_headers({"x-api-key": self.api_key} if self.api_key else None)

    def _send(self, method: str, path: str, json_body=None, params=None) -> httpx.Response:
        try:
            return self._http.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(),
                json=json_body,
                params=params,
            )
        except httpx.TransportError as exc:
            raise NetworkError(str(exc)) from exc

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        message = extract_error_message(response, self.error_fields)
        raise RemoteRequestError(
            f"{action}: {message}", status_code=response.status_code, body=response.text
        )

    def _request(self, method: str, path: str, action: str, json_body=None, params=None):
        """Send a request and return the decoded JSON body.

        `action` prefixes the error message, e.g. "Failed to list plans".
        """
        response = self._send(method, path, json_body=json_body, params=params)
        self._raise_for_status(response, action)
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteRequestError(
                f"{action}: invalid JSON response",
                status_code=response.status_code,
                body=response.text[:ERROR_BODY_EXCERPT],
            ) from exc
