"""HTTP client for the conversational backend."""

import asyncio
import json
import logging
from typing import Optional

import aiohttp
from pydantic import ValidationError

from ..models.backend import (
    BackendFailure,
    BackendResult,
    BackendSuccess,
    ChatRequest,
    ChatResponse,
)

logger = logging.getLogger(__name__)


class BackendClient:
    """Sends one recorded clip to the backend and returns its reply."""

    def __init__(self, base_url: str, timeout_seconds: Optional[float] = None):
        """Initialize the backend client.

        Args:
            base_url: Backend root, e.g. http://10.0.2.16:8000
            timeout_seconds: Total request timeout. None waits indefinitely.
        """
        self.base_url = base_url.rstrip('/')
        self.chat_url = f"{self.base_url}/chat"
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

        logger.info(f"BackendClient initialized with url: {self.chat_url}")

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def send_audio(self, audio_base64: str) -> BackendResult:
        """Post a base64 encoded clip and return the reply text or a failure.

        Never raises for transport or protocol problems; those come back as
        BackendFailure.
        """
        headers = {"Content-Type": "application/json"}
        body = ChatRequest(audio_base64=audio_base64).model_dump_json()

        try:
            session = self._get_session()
            async with session.post(self.chat_url, data=body, headers=headers) as response:
                if response.status != 200:
                    logger.warning(f"Backend answered with status {response.status}")
                    return BackendFailure(
                        detail=f"Failed to load AI response: {response.status}",
                        status=response.status,
                    )
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Backend request failed: {e!r}")
            return BackendFailure(detail=f"Failed to connect to the backend: {e!r}")

        try:
            reply = ChatResponse.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.error(f"Malformed backend response: {e}")
            return BackendFailure(detail=f"Malformed response from the backend: {e}", status=200)

        logger.debug(f"Backend replied with {len(reply.response)} characters")
        return BackendSuccess(text=reply.response)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
