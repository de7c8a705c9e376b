from __future__ import annotations

import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError


class ImageValidationError(ValueError):
    pass


def validate_image_bytes(image_bytes: bytes, max_pixels: int) -> tuple[int, int, str]:
    if not image_bytes:
        raise ImageValidationError("Image is empty")

    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image.verify()
        with Image.open(io.BytesIO(image_bytes)) as image:
            width, height = image.size
            fmt = (image.format or "").upper() or "UNKNOWN"
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageValidationError("Invalid or corrupted image data") from exc

    if width <= 0 or height <= 0:
        raise ImageValidationError("Invalid image dimensions")
    if width * height > max_pixels:
        raise ImageValidationError(f"Image too large in pixels. Max allowed is {max_pixels}")

    return width, height, fmt


def validate_base64_image(data: str, max_pixels: int) -> tuple[int, int, str]:
    try:
        image_bytes = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageValidationError("Image data is not valid base64") from exc
    return validate_image_bytes(image_bytes, max_pixels=max_pixels)
