"""
Image proxy package.
"""

from .image_proxy import (
    ALLOWED_IMAGE_DOMAINS,
    ForbiddenDomainError,
    ImageProxy,
    ImageTimeoutError,
    ProxiedImage,
)

__all__ = ["ALLOWED_IMAGE_DOMAINS", "ForbiddenDomainError", "ImageProxy", "ImageTimeoutError", "ProxiedImage"]
