"""Turns raw request payloads into analysis requests."""

import base64
import binascii
import re

from food_analyzer.api.models import AnalyzeFoodBody
from food_analyzer.config import is_valid_http_url
from food_analyzer.domain.analysis import AnalysisRequest
from food_analyzer.domain.errors import (
    IMAGE_TOO_LARGE,
    INVALID_IMAGE,
    INVALID_REQUEST,
    NO_IMAGE,
    InvalidInputError,
)

_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+=*$")
_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


def request_from_upload(
    image_bytes: bytes, region: str | None, max_bytes: int
) -> AnalysisRequest:
    """Build a request from an uploaded image file."""
    if not image_bytes:
        raise InvalidInputError(NO_IMAGE, "No image provided")
    _check_size(image_bytes, max_bytes)
    return AnalysisRequest(image_bytes=image_bytes, region=_clean(region))


def request_from_body(body: AnalyzeFoodBody, max_bytes: int) -> AnalysisRequest:
    """Build a request from a JSON body with imageUrl or imageBase64."""
    image_url = _clean(body.image_url)
    encoded = _clean(body.image_base64)
    if image_url and encoded:
        raise InvalidInputError(
            INVALID_REQUEST, "Provide exactly one of imageUrl or imageBase64"
        )
    if image_url:
        if not is_valid_http_url(image_url):
            raise InvalidInputError(INVALID_IMAGE, "imageUrl must be an http(s) URL")
        return AnalysisRequest(image_url=image_url, region=_clean(body.region))
    if encoded:
        image_bytes = decode_base64_image(encoded)
        _check_size(image_bytes, max_bytes)
        return AnalysisRequest(image_bytes=image_bytes, region=_clean(body.region))
    raise InvalidInputError(NO_IMAGE, "No image provided")


def decode_base64_image(encoded: str) -> bytes:
    """Decode base64 image text, accepting an optional data-URL prefix."""
    payload = _DATA_URL_PREFIX.sub("", encoded.strip(), count=1)
    if not _BASE64_PATTERN.match(payload):
        raise InvalidInputError(INVALID_IMAGE, "imageBase64 is not valid base64")
    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError(
            INVALID_IMAGE, "imageBase64 is not valid base64"
        ) from exc
    if not decoded:
        raise InvalidInputError(NO_IMAGE, "No image provided")
    return decoded


def _check_size(image_bytes: bytes, max_bytes: int) -> None:
    if len(image_bytes) > max_bytes:
        raise InvalidInputError(
            IMAGE_TOO_LARGE, f"Image exceeds the {max_bytes} byte limit"
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
