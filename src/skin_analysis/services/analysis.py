"""Analysis stage: remote severity classification."""

import logging
from dataclasses import dataclass
from typing import Protocol

from skin_analysis.domain.records import AnalysisResult

_logger = logging.getLogger(__name__)


class ClassificationClient(Protocol):
    """Interface for the remote classification service.

    Implementations raise RemoteServiceError for non-2xx answers and
    ConnectivityError when no answer arrives.
    """

    async def classify(self, base64_image: str, bearer_token: str) -> AnalysisResult:
        """Submit an encoded image and return the service's JSON body."""


@dataclass
class AnalysisService:
    """Sends encoded images for classification, one attempt per call."""

    client: ClassificationClient

    async def analyze(self, base64_image: str, bearer_token: str) -> AnalysisResult:
        """Return the opaque classification result for an encoded image."""
        result = await self.client.classify(base64_image, bearer_token)
        _logger.info("Image classified: fields=%s", sorted(result))
        return result
