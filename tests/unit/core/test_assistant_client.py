"""Tests for the Assistant Service HTTP client."""

import json

import httpx
import pytest

from plancoach.core.assistant_client import AssistantClient
from plancoach.core.exceptions import AssistantRequestError, UpstreamUnavailableError
from plancoach.schemas.assistant import RunStatus


def make_client(handler, max_retries=3) -> AssistantClient:
    return AssistantClient(
        api_key="test-key",
        base_url="https://assistant.test/v1/",
        max_retries=max_retries,
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_create_thread_sends_auth_and_beta_headers():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "thread_abc", "object": "thread"})

    thread_id = await make_client(handler).create_thread()

    assert thread_id == "thread_abc"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://assistant.test/v1/threads"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["OpenAI-Beta"] == "assistants=v2"


@pytest.mark.asyncio
async def test_create_run_passes_additional_instructions():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "run_1", "thread_id": "thread_1", "status": "queued"})

    run = await make_client(handler).create_run("thread_1", "asst_1", instructions="Give examples")

    assert bodies == [{"assistant_id": "asst_1", "additional_instructions": "Give examples"}]
    assert run.id == "run_1"
    assert run.status is RunStatus.QUEUED


@pytest.mark.asyncio
async def test_get_run_parses_last_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "id": "run_1",
                "thread_id": "thread_1",
                "status": "failed",
                "last_error": {"code": "server_error", "message": "Something broke"},
            },
        )

    run = await make_client(handler).get_run("thread_1", "run_1")

    assert run.status is RunStatus.FAILED
    assert run.failure_reason == "Something broke"


@pytest.mark.asyncio
async def test_unknown_run_status_treated_as_active():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "run_1", "status": "something_new"})

    run = await make_client(handler).get_run("thread_1", "run_1")

    assert not run.status.is_terminal


@pytest.mark.asyncio
async def test_list_messages_newest_first_with_text_parts():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "id": "msg_2",
                        "role": "assistant",
                        "created_at": 20,
                        "content": [
                            {"type": "text", "text": {"value": "Hello", "annotations": []}},
                            {"type": "image_file", "image_file": {"file_id": "file_1"}},
                            {"type": "text", "text": {"value": "there"}},
                        ],
                    },
                    {"id": "msg_1", "role": "user", "created_at": 10, "content": []},
                ]
            },
        )

    messages = await make_client(handler).list_messages("thread_1", limit=5)

    assert seen[0].url.params["order"] == "desc"
    assert seen[0].url.params["limit"] == "5"
    assert [m.id for m in messages] == ["msg_2", "msg_1"]
    assert messages[0].text == "Hello\nthere"
    assert messages[1].text == ""


@pytest.mark.asyncio
async def test_delete_message_uses_delete():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "msg_1", "deleted": True})

    await make_client(handler).delete_message("thread_1", "msg_1")

    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/v1/threads/thread_1/messages/msg_1"


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"error": {"message": "bad assistant"}})

    with pytest.raises(AssistantRequestError) as exc_info:
        await make_client(handler).create_run("thread_1", "asst_missing")

    assert len(calls) == 1
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [429, 500, 503])
async def test_retryable_status_exhausts_retries(status_code):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code, text="busy")

    with pytest.raises(UpstreamUnavailableError):
        await make_client(handler, max_retries=3).create_thread()

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_transient_failure_recovers():
    responses = iter(
        [
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, json={"id": "thread_ok"}),
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return next(responses)

    assert await make_client(handler).create_thread() == "thread_ok"


@pytest.mark.asyncio
async def test_connection_errors_become_upstream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailableError):
        await make_client(handler, max_retries=2).create_thread()


@pytest.mark.asyncio
async def test_every_attempt_goes_through_rate_limiter():
    acquired = []

    class CountingLimiter:
        async def acquire(self):
            acquired.append(True)
            return 0.0

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    client = make_client(handler, max_retries=2)
    client.rate_limiter = CountingLimiter()

    with pytest.raises(UpstreamUnavailableError):
        await client.create_thread()

    assert len(acquired) == 2
