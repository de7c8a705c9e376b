from __future__ import annotations


class ConfigError(RuntimeError):
    """Missing or invalid configuration"""


class RemovalError(Exception):
    """Base error for a single background-removal attempt"""


class NoImageSelectedError(RemovalError):
    """Removal triggered before any image was uploaded"""


class ImageReadError(RemovalError):
    """The uploaded file could not be read"""


class UnknownMediaTypeError(RemovalError):
    """Neither the file name nor the client told us the image type"""


class ModelCommunicationError(RemovalError):
    """The call to the hosted model failed"""


class EmptyResultError(RemovalError):
    """The model answered without a usable image"""


class RemovalInProgressError(RemovalError):
    """Another removal for the same client is still running"""
