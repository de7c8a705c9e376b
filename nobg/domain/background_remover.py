from __future__ import annotations

from abc import ABC, abstractmethod

from nobg.domain.models import EncodedImage, RemovalResult


class BackgroundRemover(ABC):
    @abstractmethod
    async def remove(self, image: EncodedImage) -> RemovalResult:
        """Return the model's cut-out image (base64) and any note it attached."""
