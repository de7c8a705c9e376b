from __future__ import annotations

import asyncio
import base64

import pytest

from nobg.application.image_encoding import (
    encode_selection,
    mime_type_from_name,
    output_filename,
    read_upload,
    resolve_media_type,
    split_data_uri,
    to_data_uri,
)
from nobg.domain.errors import ImageReadError, UnknownMediaTypeError
from nobg.domain.models import SelectedImage


class FakeUpload:
    def __init__(self, filename: str, data: bytes, content_type: str = '') -> None:
        self.filename = filename
        self.content_type = content_type
        self._data = data

    async def read(self) -> bytes:
        return self._data


class BrokenUpload(FakeUpload):
    async def read(self) -> bytes:
        raise OSError('disk went away')


@pytest.mark.parametrize(
    ('name', 'expected'),
    [
        ('a.png', 'image/png'),
        ('A.PNG', 'image/png'),
        ('photo.jpg', 'image/jpeg'),
        ('photo.JpG', 'image/jpeg'),
        ('photo.jpeg', 'image/jpeg'),
        ('sticker.WEBP', 'image/webp'),
        ('archive.tar.png', 'image/png'),
    ],
)
def test_mime_type_from_supported_extension(name: str, expected: str) -> None:
    assert mime_type_from_name(name) == expected


@pytest.mark.parametrize('name', ['image', 'scan.gif', 'notes.txt', 'png', '', 'photo.'])
def test_mime_type_from_unknown_extension(name: str) -> None:
    assert mime_type_from_name(name) is None


def test_resolve_media_type_falls_back_to_reported_type() -> None:
    assert resolve_media_type('image', 'image/gif') == 'image/gif'
    assert resolve_media_type('photo.jpg', 'image/png') == 'image/jpeg'


@pytest.mark.parametrize('reported', ['', None, 'application/octet-stream', 'text/plain'])
def test_resolve_media_type_without_image_type(reported: str | None) -> None:
    with pytest.raises(UnknownMediaTypeError):
        resolve_media_type('image', reported)


def test_data_uri_round_trip() -> None:
    payload = bytes(range(256)) * 3
    uri = to_data_uri(payload, 'image/png')

    assert uri.startswith('data:image/png;base64,')
    assert base64.b64decode(split_data_uri(uri)) == payload


def test_read_upload_builds_data_uri() -> None:
    selected = asyncio.run(read_upload(FakeUpload('cat.webp', b'RIFF1234', 'application/octet-stream')))

    assert selected.file_name == 'cat.webp'
    assert selected.reported_type == 'application/octet-stream'
    assert selected.data_uri.startswith('data:image/webp;base64,')
    assert base64.b64decode(split_data_uri(selected.data_uri)) == b'RIFF1234'


def test_read_upload_wraps_read_failure() -> None:
    with pytest.raises(ImageReadError) as exc_info:
        asyncio.run(read_upload(BrokenUpload('cat.png', b'')))

    assert 'Failed to read the image file' in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_encode_selection_strips_prefix() -> None:
    selected = SelectedImage(file_name='dog.JPG', data_uri='data:image/jpeg;base64,QUJD', reported_type='')

    encoded = encode_selection(selected)

    assert encoded.data == 'QUJD'
    assert encoded.media_type == 'image/jpeg'


@pytest.mark.parametrize(
    ('name', 'expected'),
    [
        ('photo.jpg', 'photo_no-bg.png'),
        ('archive.tar.gz', 'archive.tar_no-bg.png'),
        ('image', 'image_no-bg.png'),
        (None, 'download.png'),
    ],
)
def test_output_filename(name: str | None, expected: str) -> None:
    assert output_filename(name) == expected


def test_read_upload_rejects_empty_file() -> None:
    with pytest.raises(ImageReadError, match='empty'):
        asyncio.run(read_upload(FakeUpload('a.png', b'', 'image/png')))
