"""HTTP adapter for the OpenAI Assistants (threads/runs) API."""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
from httpx import HTTPStatusError, TimeoutException

from plancoach.core.exceptions import AssistantRequestError, UpstreamUnavailableError
from plancoach.schemas.assistant import AssistantMessage, RunJob, RunStatus
from plancoach.services.conversation.rate_limiter import RateLimiter
from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AssistantClient:
    """Client for the Assistant Service.

    Handles authentication headers, the process-wide rate limit, retries with
    exponential backoff, and translation of the wire format into
    ``RunJob`` / ``AssistantMessage`` objects.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        rate_limiter: Optional[RateLimiter] = None,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Assistant Service client.

        Args:
            api_key: API key for authentication
            base_url: Base URL for the API
            rate_limiter: Shared limiter applied before every request
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            retry_delay: Base delay for exponential backoff
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter or RateLimiter(0)
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.transport = transport
        self.logger = LOGGER

    # ------------------------------------------------------------------
    # Assistant Service operations
    # ------------------------------------------------------------------

    async def create_thread(self) -> str:
        data = await self.call_api("/threads", payload={})
        thread_id = data["id"]
        LOGGER.info(f"Created assistant thread {thread_id}")
        return thread_id

    async def append_message(self, thread_id: str, role: str, text: str) -> AssistantMessage:
        data = await self.call_api(
            f"/threads/{thread_id}/messages",
            payload={"role": role, "content": text},
        )
        return self._parse_message(data)

    async def create_run(
        self,
        thread_id: str,
        assistant_id: str,
        instructions: Optional[str] = None,
    ) -> RunJob:
        payload: Dict[str, Any] = {"assistant_id": assistant_id}
        if instructions:
            # Appended to the assistant's own instructions rather than replacing them
            payload["additional_instructions"] = instructions
        data = await self.call_api(f"/threads/{thread_id}/runs", payload=payload)
        return self._parse_run(data, thread_id)

    async def get_run(self, thread_id: str, run_id: str) -> RunJob:
        data = await self.call_api(f"/threads/{thread_id}/runs/{run_id}", method="GET")
        return self._parse_run(data, thread_id)

    async def list_runs(self, thread_id: str) -> List[RunJob]:
        data = await self.call_api(
            f"/threads/{thread_id}/runs", method="GET", payload={"limit": 20}
        )
        return [self._parse_run(item, thread_id) for item in data.get("data", [])]

    async def list_messages(self, thread_id: str, limit: int = 20) -> List[AssistantMessage]:
        data = await self.call_api(
            f"/threads/{thread_id}/messages",
            method="GET",
            payload={"order": "desc", "limit": limit},
        )
        return [self._parse_message(item) for item in data.get("data", [])]

    async def delete_message(self, thread_id: str, message_id: str) -> None:
        await self.call_api(f"/threads/{thread_id}/messages/{message_id}", method="DELETE")

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def call_api(
        self,
        endpoint: str,
        method: str = "POST",
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Call the API with rate limiting and retry logic.

        Args:
            endpoint: API path appended to base_url
            method: HTTP method (POST, GET, DELETE)
            payload: JSON body for POST, query params for GET

        Returns:
            Parsed JSON response

        Raises:
            AssistantRequestError: On a non-retryable 4xx response
            UpstreamUnavailableError: If the call still fails after retries
        """
        url = f"{self.base_url}{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }

        self.logger.debug(f"Calling Assistant API: {method} {url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(self.max_retries):
                await self.rate_limiter.acquire()
                try:
                    if method.upper() == "GET":
                        response = await client.get(url, headers=headers, params=payload)
                    elif method.upper() == "DELETE":
                        response = await client.delete(url, headers=headers)
                    else:
                        response = await client.post(url, headers=headers, json=payload)

                    response.raise_for_status()
                    return response.json()

                except HTTPStatusError as e:
                    await self._handle_http_error(e, attempt, url)

                except TimeoutException as e:
                    await self._handle_transport_error(e, attempt, url, "timeout")

                except httpx.TransportError as e:
                    await self._handle_transport_error(e, attempt, url, "transport error")

        raise UpstreamUnavailableError(f"Failed to call {url} after {self.max_retries} attempts")

    async def _handle_http_error(self, error: HTTPStatusError, attempt: int, url: str):
        """Handle HTTP status errors."""
        status_code = error.response.status_code
        error_body = error.response.text

        self.logger.warning(
            f"Assistant API HTTP error (Attempt {attempt + 1}/{self.max_retries})",
            extra={
                "url": url,
                "status_code": status_code,
                "error_body": error_body[:500]
            }
        )

        # Don't retry on client errors (4xx) unless it's rate limiting (429)
        if 400 <= status_code < 500 and status_code != 429:
            raise AssistantRequestError(
                f"Assistant API rejected request ({status_code}): {error_body[:200]}",
                status_code=status_code,
                original_error=error,
            ) from error

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise UpstreamUnavailableError(
                f"Assistant API HTTP {status_code} after {self.max_retries} attempts",
                original_error=error,
            ) from error

    async def _handle_transport_error(self, error: Exception, attempt: int, url: str, kind: str):
        """Handle timeouts and connection failures."""
        self.logger.warning(
            f"Assistant API {kind} (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url, "error": str(error)}
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise UpstreamUnavailableError(
                f"Assistant API {kind} after {self.max_retries} attempts",
                original_error=error,
            ) from error

    async def _wait_before_retry(self, attempt: int):
        """Exponential backoff wait."""
        wait_time = self.retry_delay * (2 ** attempt)
        await asyncio.sleep(wait_time)

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_run(data: Dict[str, Any], thread_id: str) -> RunJob:
        last_error = data.get("last_error") or None
        if isinstance(last_error, dict):
            last_error = last_error.get("message") or last_error.get("code")
        return RunJob(
            id=data["id"],
            thread_id=data.get("thread_id") or thread_id,
            status=RunStatus.parse(data.get("status", "")),
            last_error=last_error,
        )

    @staticmethod
    def _parse_message(data: Dict[str, Any]) -> AssistantMessage:
        parts = []
        content = data.get("content")
        if isinstance(content, str):
            parts.append(content)
        else:
            for part in content or []:
                if part.get("type") == "text":
                    parts.append(part.get("text", {}).get("value", ""))
        return AssistantMessage(
            id=data["id"],
            role=data.get("role", ""),
            text="\n".join(parts),
            created_at=data.get("created_at") or 0,
        )
