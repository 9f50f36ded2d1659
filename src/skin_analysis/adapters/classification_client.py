"""HTTP client for the remote severity classification service."""

from dataclasses import dataclass

import httpx

from skin_analysis.domain.errors import ConnectivityError, RemoteServiceError
from skin_analysis.domain.records import AnalysisResult
from skin_analysis.services.analysis import ClassificationClient


@dataclass
class HttpxClassificationClient(ClassificationClient):
    """Classification client using httpx."""

    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, url: str) -> "HttpxClassificationClient":
        """Create a classification client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def classify(self, base64_image: str, bearer_token: str) -> AnalysisResult:
        """POST the encoded image and return the JSON result."""
        try:
            response = await self.http_client.post(
                self.url,
                json={"base64Image": base64_image},
                headers={
                    "Authorization": f"Bearer {bearer_token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.TransportError as exc:
            raise ConnectivityError(str(exc) or type(exc).__name__) from exc
        if not response.is_success:
            raise RemoteServiceError(response.status_code, response.reason_phrase)
        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteServiceError(
                response.status_code, "Response body is not JSON"
            ) from exc
        if not isinstance(payload, dict):
            raise RemoteServiceError(
                response.status_code, "Response body is not a JSON object"
            )
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
