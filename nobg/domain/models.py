from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class EncodedImage:
    data: str
    media_type: str


@dataclass(frozen=True)
class SelectedImage:
    file_name: str
    data_uri: str
    reported_type: str = ""


@dataclass(frozen=True)
class RemovalResult:
    image: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class ImagePart:
    data: str
    media_type: str


@dataclass(frozen=True)
class TextPart:
    text: str


ResponsePart = Union[ImagePart, TextPart]
