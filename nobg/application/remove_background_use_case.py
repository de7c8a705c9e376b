from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from nobg.application.image_encoding import encode_selection
from nobg.domain.background_remover import BackgroundRemover
from nobg.domain.errors import EmptyResultError, NoImageSelectedError, RemovalInProgressError
from nobg.domain.models import RemovalResult, SelectedImage
from nobg.infrastructure.image_validation import ImageValidationError, validate_base64_image

NO_IMAGE_FALLBACK = "The AI model did not return an image. Please try again."


class RemoveBackgroundUseCase:
    def __init__(self, remover: BackgroundRemover, max_pixels: int = 40_000_000) -> None:
        self._remover = remover
        self._max_pixels = max_pixels

    async def execute(self, selected: SelectedImage | None) -> RemovalResult:
        if selected is None:
            raise NoImageSelectedError("Please upload an image first.")

        encoded = encode_selection(selected)
        result = await self._remover.remove(encoded)

        if not result.image:
            raise EmptyResultError(result.note or NO_IMAGE_FALLBACK)
        try:
            validate_base64_image(result.image, max_pixels=self._max_pixels)
        except ImageValidationError as exc:
            raise EmptyResultError("The AI model returned an image that could not be decoded.") from exc
        return result


class RemovalGuard:
    """Busy flag per client: at most one removal in flight, no queueing."""

    def __init__(self) -> None:
        self._busy: set[str] = set()

    def is_busy(self, key: str) -> bool:
        return key in self._busy

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        if key in self._busy:
            raise RemovalInProgressError("A background removal is already in progress. Please wait.")
        self._busy.add(key)
        try:
            yield
        finally:
            self._busy.discard(key)
