"""Pydantic models for analyze-food request payloads."""

from pydantic import BaseModel, Field


class AnalyzeFoodBody(BaseModel):
    """JSON analyze-food request."""

    image_url: str | None = Field(default=None, alias="imageUrl")
    image_base64: str | None = Field(default=None, alias="imageBase64")
    region: str | None = None


class ErrorBody(BaseModel):
    """Error payload returned for failed requests."""

    error: str
    error_code: str = Field(serialization_alias="errorCode")
