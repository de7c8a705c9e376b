from __future__ import annotations

import base64
from pathlib import PurePosixPath
from typing import Any

from nobg.domain.errors import ImageReadError, UnknownMediaTypeError
from nobg.domain.models import EncodedImage, SelectedImage

_MEDIA_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


def mime_type_from_name(file_name: str) -> str | None:
    if "." not in file_name:
        return None
    extension = file_name.rsplit(".", 1)[1].lower()
    return _MEDIA_TYPES.get(extension)


def to_data_uri(data: bytes, media_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{media_type or 'application/octet-stream'};base64,{encoded}"


def split_data_uri(data_uri: str) -> str:
    _, _, payload = data_uri.partition(",")
    return payload


def _reported_image_type(reported_type: str | None) -> str:
    reported = (reported_type or "").strip().lower()
    return reported if reported.startswith("image/") else ""


def resolve_media_type(file_name: str, reported_type: str | None) -> str:
    media_type = mime_type_from_name(file_name) or _reported_image_type(reported_type)
    if not media_type:
        raise UnknownMediaTypeError(
            "Could not determine image type. Please use a standard format (PNG, JPG, WEBP)."
        )
    return media_type


async def read_upload(upload: Any) -> SelectedImage:
    """Read an uploaded file (anything with ``filename``, ``content_type`` and
    an awaitable ``read()``) into a data URI."""
    file_name = getattr(upload, "filename", None) or ""
    reported_type = getattr(upload, "content_type", None) or ""
    try:
        data = await upload.read()
    except Exception as exc:
        raise ImageReadError("Failed to read the image file. Please try another one.") from exc
    if not data:
        raise ImageReadError("Uploaded file is empty. Please choose another image.")

    media_type = mime_type_from_name(file_name) or _reported_image_type(reported_type)
    return SelectedImage(
        file_name=file_name,
        data_uri=to_data_uri(data, media_type),
        reported_type=reported_type,
    )


def encode_selection(selected: SelectedImage) -> EncodedImage:
    media_type = resolve_media_type(selected.file_name, selected.reported_type)
    return EncodedImage(data=split_data_uri(selected.data_uri), media_type=media_type)


def output_filename(file_name: str | None) -> str:
    if not file_name:
        return "download.png"
    name = PurePosixPath(file_name).name or file_name
    if "." in name:
        name = name.rsplit(".", 1)[0]
    return f"{name}_no-bg.png"
