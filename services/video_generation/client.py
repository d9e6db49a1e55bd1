"""
Social Effects Generation Client

Low-level request/response mechanics for the companion renderer's single
generation endpoint:
- Payload serialization with an explicit Content-Length
- One POST per call, bounded by the per-request timeout
- Response validation and failure classification

The client never retries; retry decisions belong to RetryPolicy.
"""

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from core.config import Config, get_config

from .errors import (
    ConnectionFailed,
    EncodingFailed,
    GenerationFailed,
    HTTPStatus,
    InvalidResponse,
)
from .models import GenerateResponse, GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)


def encode_payload(payload: dict[str, Any]) -> bytes:
    """
    Serialize a request payload to UTF-8 JSON.

    Raises:
        EncodingFailed: If the payload cannot be represented as UTF-8 JSON
    """
    try:
        return json.dumps(payload, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingFailed(str(e)) from e


class GenerationClient:
    """
    Client for the Social Effects /generate endpoint.

    Usage:
        client = GenerationClient()
        result = await client.send(request)
        await client.close()

    The underlying httpx.AsyncClient is shared across calls and holds no
    per-call state, so concurrent sends are safe.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the generation client.

        Args:
            config: Optional config override
            http_client: Optional pre-built HTTP client (tests inject a mock transport)
        """
        self.config = config or get_config()
        self.timeout = self.config.generation.request_timeout
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self):
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def send(self, request: GenerationRequest) -> GenerationResult:
        """
        Send one generation request and validate the reply.

        Args:
            request: The render to request

        Returns:
            GenerationResult with the companion-reported video path

        Raises:
            EncodingFailed: Payload could not be serialized (terminal)
            ConnectionFailed: No HTTP response (retryable)
            HTTPStatus: Non-200 status (retryable)
            InvalidResponse: Body not a JSON object or missing video_path (retryable)
            GenerationFailed: Companion reported success=false (retryable)
        """
        payload = request.to_payload(ping_pong=self.config.generation.ping_pong)
        if self.config.debug:
            logger.debug(f"Request body dict: {payload}")

        body = encode_payload(payload)
        if self.config.debug:
            logger.debug(f"Sending JSON ({len(body)} bytes): {body.decode('utf-8')}")

        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        }

        client = await self._get_client()
        logger.info(f"Requesting render: title={request.title[:50]!r}, type={request.content_type}")

        try:
            response = await client.post(
                self.config.companion.generate_url,
                content=body,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise ConnectionFailed(
                f"Social Effects request timed out after {self.timeout:.0f}s: {type(e).__name__}"
            ) from e
        except httpx.RequestError as e:
            raise ConnectionFailed(
                f"Social Effects request failed: {type(e).__name__}: {e}"
            ) from e

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> GenerationResult:
        """Validate a /generate response in protocol order."""
        if response.status_code != 200:
            error_body = response.text or "Unknown error"
            logger.error(f"Social Effects returned HTTP {response.status_code}: {error_body[:200]}")
            raise HTTPStatus(response.status_code, error_body)

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponse(f"Response body is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise InvalidResponse(f"Expected a JSON object, got {type(data).__name__}")

        try:
            reply = GenerateResponse.model_validate(data)
        except ValidationError as e:
            raise InvalidResponse(f"Malformed response: {e}") from e

        if reply.success is not True:
            message = reply.error or "Unknown error"
            logger.error(f"Social Effects reported failure: {message}")
            raise GenerationFailed(message)

        if reply.video_path is None:
            raise InvalidResponse("Response is missing video_path")

        logger.info(f"Video generated: {reply.video_path}")
        return GenerationResult(video_path=reply.video_path)
