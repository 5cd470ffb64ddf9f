"""Client for the external signature verification (AI) service.

The service owns the matching model; this client only forwards images and
returns its verdict. Transport and HTTP failures come back as failure-shaped
responses so callers can fall back to manual marking.
"""
import logging
from typing import Any

import httpx

from app.core.config import settings
from app.schemas.signature import TrainingResponse, VerificationResponse

logger = logging.getLogger(__name__)


class VerificationClient:
    """Thin async wrapper over ``/verify``, ``/train/{id}`` and ``/health``."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.ai_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ai_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        try:
            data = response.json()
        except ValueError:
            return default
        return data.get("message") or data.get("detail") or default

    async def verify(
        self,
        image: bytes,
        filename: str = "signature.png",
        content_type: str = "image/png",
        session_id: int | None = None,
    ) -> VerificationResponse:
        """Ask the service which student the signature belongs to."""
        data: dict[str, Any] = {}
        if session_id:
            data["session_id"] = str(session_id)
        try:
            async with self._client() as client:
                response = await client.post(
                    "/verify", files={"file": (filename, image, content_type)}, data=data
                )
            if response.status_code >= 400:
                raise httpx.HTTPStatusError(
                    self._error_message(response, "Verification request failed"),
                    request=response.request,
                    response=response,
                )
            return VerificationResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Signature verification failed: %s", exc)
            return VerificationResponse(
                success=False,
                match=False,
                predicted_student_id=None,
                score=0.0,
                decision="error",
                message="Failed to verify signature",
                error=str(exc),
            )

    async def train(self, student_id: int) -> TrainingResponse:
        """Start (re)training the model for one student."""
        try:
            async with self._client() as client:
                response = await client.post(f"/train/{student_id}")
            if response.status_code >= 400:
                raise httpx.HTTPStatusError(
                    self._error_message(response, "Training request failed"),
                    request=response.request,
                    response=response,
                )
            return TrainingResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Signature training for student %s failed: %s", student_id, exc)
            return TrainingResponse(
                success=False, message="Failed to start training", error=str(exc)
            )

    async def health(self) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get("/health")
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Verification service health check failed: %s", exc)
            return {"status": "error", "healthy": False}
        status_text = data.get("status", "unknown")
        return {"status": status_text, "healthy": response.is_success and status_text == "healthy"}


def get_verification_client() -> VerificationClient:
    """Dependency returning a client bound to the configured service URL."""
    return VerificationClient()
