# tests/unit/test_client.py

"""Tests for RemoteClient against an in-process httpx transport."""

import json

import httpx
import pytest

from testrelay.client import RemoteClient, RunStatusKind
from testrelay.client.http import VERSION_HEADER
from testrelay.config import ClientConfig
from testrelay.exceptions import DomainError, TransportError

SERVER_URL = "https://service.test"


def make_client(handler) -> RemoteClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteClient(ClientConfig(server_url=SERVER_URL), http_client=http_client, version="1.2.3")


@pytest.mark.asyncio
class TestCreateTestRun:
    async def test_posts_commit_and_parses_pending_build(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "run-1",
                    "pending_build_id": "build-1",
                    "pending_build_logstream_url": "https://logs.test/build-1",
                    "logstream_url": "https://logs.test/run-1",
                    "error_message": "",
                    "is_error": False,
                },
            )

        client = make_client(handler)
        result = await client.create_test_run("abc123", autofix_request_id="fix-9")

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"{SERVER_URL}/services/coderbot/create_test_run"
        assert request.headers[VERSION_HEADER] == "1.2.3"
        assert json.loads(request.content) == {"autofix_request_id": "fix-9", "commit_sha": "abc123"}
        assert result.run_id == "run-1"
        assert result.has_pending_build
        assert result.pending_build_logstream_url == "https://logs.test/build-1"
        assert result.logstream_url == "https://logs.test/run-1"

    async def test_missing_autofix_id_is_sent_as_empty_string(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "run-1", "logstream_url": "https://logs.test/run-1"})

        result = await make_client(handler).create_test_run("abc123")

        assert bodies[0]["autofix_request_id"] == ""
        assert not result.has_pending_build
        assert result.pending_build_id is None

    async def test_403_with_valid_body_is_not_a_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"id": "run-1", "logstream_url": "https://logs.test/run-1"})

        result = await make_client(handler).create_test_run("abc123")

        assert result.run_id == "run-1"

    async def test_403_with_error_body_raises_domain_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                403,
                json={"is_error": True, "error_message": "This repository belongs to another user."},
            )

        with pytest.raises(DomainError, match="belongs to another user"):
            await make_client(handler).create_test_run("abc123")

    async def test_server_error_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="internal error")

        with pytest.raises(TransportError) as exc_info:
            await make_client(handler).create_test_run("abc123")

        assert exc_info.value.status_code == 500
        assert "status code: 500" in str(exc_info.value)
        assert "internal error" in str(exc_info.value)

    async def test_malformed_body_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(TransportError, match="failed to create test run"):
            await make_client(handler).create_test_run("abc123")

    async def test_network_failure_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError, match="connection refused"):
            await make_client(handler).create_test_run("abc123")

    async def test_missing_logstream_url_is_rejected(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "run-1"})

        with pytest.raises(TransportError, match="logstream_url"):
            await make_client(handler).create_test_run("abc123")


@pytest.mark.asyncio
class TestFetchStatus:
    async def test_fetch_run_status_sends_run_id(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "failure", "error_message": "", "is_error": False})

        status = await make_client(handler).fetch_run_status("run-7")

        assert seen[0].url.path == "/services/coderbot/fetch_test_run"
        assert seen[0].url.params["test_run_id"] == "run-7"
        assert seen[0].headers[VERSION_HEADER] == "1.2.3"
        assert status.status is RunStatusKind.FAILURE
        assert not status.is_error

    async def test_fetch_build_status_sends_build_id(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "success"})

        status = await make_client(handler).fetch_build_status("build-3")

        assert seen[0].url.path == "/services/coderbot/fetch_test_runner_build"
        assert seen[0].url.params["test_runner_build_id"] == "build-3"
        assert status.status is RunStatusKind.SUCCESS

    async def test_unknown_status_maps_to_pending(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "in_progress"})

        status = await make_client(handler).fetch_run_status("run-7")

        assert status.status is RunStatusKind.PENDING
        assert status.raw_status == "in_progress"

    async def test_error_payload_is_returned_not_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"status": "success", "is_error": True, "error_message": "tester crashed"}
            )

        status = await make_client(handler).fetch_run_status("run-7")

        assert status.is_error
        assert status.error_message == "tester crashed"

    async def test_fetch_403_is_a_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"status": "success"})

        with pytest.raises(TransportError) as exc_info:
            await make_client(handler).fetch_run_status("run-7")

        assert exc_info.value.status_code == 403

    async def test_fetch_network_failure_is_a_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError, match="failed to fetch build result"):
            await make_client(handler).fetch_build_status("build-3")


@pytest.mark.asyncio
async def test_owned_http_client_is_closed_on_exit():
    async with RemoteClient(ClientConfig(server_url=SERVER_URL)) as client:
        http_client = client._http
    assert http_client.is_closed
