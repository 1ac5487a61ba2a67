#
# src/testrelay/client/http.py
#
"""
JSON-over-HTTPS client for the remote test-run service.

Every call here is single-shot; retrying is the caller's business.
"""

import json
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from testrelay import __version__
from testrelay.client.models import BuildStatus, RunCreationResult, RunStatus
from testrelay.config.models import ClientConfig
from testrelay.exceptions import DomainError, TransportError

log = structlog.get_logger("client.http")

VERSION_HEADER = "X-Codecrafters-CLI-Version"
CREATE_TEST_RUN_PATH = "/services/coderbot/create_test_run"
FETCH_TEST_RUN_PATH = "/services/coderbot/fetch_test_run"
FETCH_BUILD_PATH = "/services/coderbot/fetch_test_runner_build"

# The service answers authorization denials with 403 and a regular JSON body.
FORBIDDEN_WITH_BODY = 403


def _decode_body(response: httpx.Response, what: str) -> Mapping[str, Any]:
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TransportError(f"failed to {what}: {e}", status_code=response.status_code) from e
    if not isinstance(data, Mapping):
        raise TransportError(
            f"failed to {what}: expected a JSON object, got {type(data).__name__}",
            status_code=response.status_code,
        )
    return data


class RemoteClient:
    """
    Async client for the create/fetch endpoints of the test-run service.

    Use as an async context manager; an `httpx.AsyncClient` may be injected
    (it is then left open on exit, since the caller owns it).
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
        version: str = __version__,
    ):
        self.config = config
        self.version = version
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.request_timeout)
        self._log = log.bind(server_url=config.server_url)

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        return {VERSION_HEADER: self.version}

    def _url(self, path: str) -> str:
        return f"{self.config.server_url}{path}"

    async def create_test_run(
        self, commit_sha: str, autofix_request_id: str | None = None
    ) -> RunCreationResult:
        """
        Asks the service to start a test run for `commit_sha`.

        Raises:
            TransportError: Network failure, unexpected status, or malformed body.
            DomainError: The service rejected the request (``is_error=true``).
        """
        payload = {
            "autofix_request_id": autofix_request_id or "",
            "commit_sha": commit_sha,
        }
        self._log.debug("Creating test run", commit_sha=commit_sha)

        try:
            response = await self._http.post(
                self._url(CREATE_TEST_RUN_PATH), json=payload, headers=self._headers()
            )
        except httpx.HTTPError as e:
            self._log.warning("Create test run request failed", error=str(e))
            raise TransportError(f"failed to create test run: {e}") from e

        if not response.is_success and response.status_code != FORBIDDEN_WITH_BODY:
            self._log.warning(
                "Create test run returned an error status",
                status_code=response.status_code,
                response_text=response.text,
            )
            raise TransportError(
                f"failed to create test run. status code: {response.status_code}, body: {response.text}",
                status_code=response.status_code,
            )

        result = RunCreationResult.from_json(_decode_body(response, "create test run"))

        if result.is_error:
            self._log.info("Service rejected test run", error_message=result.error_message)
            raise DomainError(result.error_message, response=result)

        if not result.logstream_url:
            raise TransportError(
                "failed to create test run: response is missing logstream_url",
                status_code=response.status_code,
            )

        self._log.debug(
            "Test run created",
            run_id=result.run_id,
            pending_build_id=result.pending_build_id,
        )
        return result

    async def _fetch(self, path: str, params: dict[str, str], what: str) -> Mapping[str, Any]:
        try:
            response = await self._http.get(self._url(path), params=params, headers=self._headers())
        except httpx.HTTPError as e:
            raise TransportError(f"failed to fetch {what} from CodeCrafters: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"failed to fetch {what} from CodeCrafters. status code: {response.status_code}",
                status_code=response.status_code,
            )

        return _decode_body(response, f"fetch {what} from CodeCrafters")

    async def fetch_build_status(self, build_id: str) -> BuildStatus:
        data = await self._fetch(FETCH_BUILD_PATH, {"test_runner_build_id": build_id}, "build result")
        status = BuildStatus.from_json(data)
        self._log.debug("Fetched build status", build_id=build_id, status=status.raw_status)
        return status

    async def fetch_run_status(self, run_id: str) -> RunStatus:
        data = await self._fetch(FETCH_TEST_RUN_PATH, {"test_run_id": run_id}, "test run result")
        status = RunStatus.from_json(data)
        self._log.debug("Fetched test run status", run_id=run_id, status=status.raw_status)
        return status


# 🔼⚙️
