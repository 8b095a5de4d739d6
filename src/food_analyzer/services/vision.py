"""Vision extraction service shared by the image-based strategies."""

import base64
from dataclasses import dataclass
from typing import Protocol

from food_analyzer.domain.analysis import AnalysisRequest


class VisionClient(Protocol):
    """Interface for structured LLM vision extraction."""

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_url: str,
        schema_name: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured extraction data matching the schema."""


@dataclass
class VisionService:
    """Prepares image input and prompts for one configured vision model."""

    client: VisionClient
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    async def extract(
        self,
        request: AnalysisRequest,
        *,
        schema_name: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Run one structured extraction against the request's image."""
        return await self.client.extract(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            image_url=image_reference(request),
            schema_name=schema_name,
            schema=schema,
            prompt=_with_region(prompt, request.region),
        )


def image_reference(request: AnalysisRequest) -> str:
    """Return a URL the vision model can fetch for the request's image."""
    if request.image_url:
        return request.image_url
    return _to_data_url(request.image_bytes or b"")


def nullable(schema: dict[str, object]) -> dict[str, object]:
    """Wrap a JSON schema so that null is also accepted."""
    return {"anyOf": [schema, {"type": "null"}]}


def strict_object(properties: dict[str, object]) -> dict[str, object]:
    """Build a strict object schema where every property is required."""
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


PRIOR_STAT_SCHEMA = strict_object(
    {
        "mu": {"type": "number", "exclusiveMinimum": 0},
        "sigma": {"type": "number", "minimum": 0},
    }
)

CONFIDENCE_SCHEMA: dict[str, object] = {
    "type": "number",
    "minimum": 0.0,
    "maximum": 1.0,
}


def _with_region(prompt: str, region: str | None) -> str:
    if not region:
        return prompt
    return f"{prompt} The photo was taken in region '{region}'."


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
