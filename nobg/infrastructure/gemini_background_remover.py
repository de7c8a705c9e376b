from __future__ import annotations

import base64
import logging
from typing import Any

from google import genai
from google.genai import types

from nobg.config import Settings
from nobg.domain.background_remover import BackgroundRemover
from nobg.domain.errors import ModelCommunicationError
from nobg.domain.models import EncodedImage, ImagePart, RemovalResult, ResponsePart, TextPart

logger = logging.getLogger("nobg.gemini")

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"
INSTRUCTION = "Isolate the main subject from the background and make the background transparent."


def response_parts(response: Any) -> list[ResponsePart]:
    """
    Flatten the first candidate of a generate_content response into
    ImagePart / TextPart items. Missing candidates, content or parts yield [].
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    if content is None:
        return []

    parts: list[ResponsePart] = []
    for part in getattr(content, "parts", None) or []:
        inline_data = getattr(part, "inline_data", None)
        if inline_data is not None and getattr(inline_data, "data", None):
            data = inline_data.data
            # SDK hands back raw bytes; older previews returned base64 text
            if isinstance(data, (bytes, bytearray)):
                data = base64.b64encode(bytes(data)).decode("ascii")
            parts.append(ImagePart(data=data, media_type=inline_data.mime_type or "image/png"))
            continue

        text = getattr(part, "text", None)
        if text:
            parts.append(TextPart(text=text))
    return parts


def collect_result(parts: list[ResponsePart]) -> RemovalResult:
    image: str | None = None
    texts: list[str] = []

    for part in parts:
        if isinstance(part, ImagePart):
            image = part.data
        elif isinstance(part, TextPart):
            texts.append(part.text)
        else:
            raise TypeError(f"Unsupported response part: {type(part).__name__}")

    note = " ".join(texts).strip() or None
    return RemovalResult(image=image, note=note)


class GeminiBackgroundRemover(BackgroundRemover):
    def __init__(self, client: genai.Client, model: str = DEFAULT_MODEL) -> None:
        self._client = client
        self._model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiBackgroundRemover:
        client = genai.Client(api_key=settings.require_api_key())
        return cls(client, model=settings.gemini_model)

    @property
    def model(self) -> str:
        return self._model

    def _build_contents(self, image: EncodedImage) -> list[types.Content]:
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=base64.b64decode(image.data), mime_type=image.media_type),
                    types.Part.from_text(text=INSTRUCTION),
                ],
            )
        ]

    async def remove(self, image: EncodedImage) -> RemovalResult:
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=self._build_contents(image),
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
            parts = response_parts(response)
        except Exception as exc:
            logger.exception("gemini request failed model=%s", self._model)
            message = str(exc).strip()
            if not message:
                raise ModelCommunicationError(
                    "An unknown error occurred while communicating with the AI model."
                ) from exc
            raise ModelCommunicationError(f"Failed to process image with AI: {message}") from exc

        result = collect_result(parts)
        logger.info(
            "gemini response model=%s parts=%d image=%s note=%s",
            self._model,
            len(parts),
            result.image is not None,
            result.note is not None,
        )
        return result
