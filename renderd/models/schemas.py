"""
Pydantic Models and Schemas
===========================

Wire models for the render socket. A request is parsed from the full body of one
connection and a response is serialized as the full body written back.
"""

from typing import Optional, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RenderRequest(BaseModel):
    """Request read from a single connection."""

    model_config = ConfigDict(extra="ignore")

    template: Any = Field(..., description="Template identifier or inline template content")
    params: Any = Field(default_factory=dict, description="Render parameters")

    @field_validator("template")
    @classmethod
    def validate_template(cls, v: Any) -> Any:
        """Template must be present and not null."""
        if v is None:
            raise ValueError("template must not be null")
        return v

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, v: Any) -> Any:
        """A null params value means no params."""
        return {} if v is None else v


class RenderResponse(BaseModel):
    """Response written back on the connection. Exactly one field is set."""

    image: Optional[str] = Field(None, description="Base64 image payload without data URL prefix")
    error: Optional[str] = Field(None, description="Human-readable failure message")

    @model_validator(mode="after")
    def check_exactly_one(self) -> "RenderResponse":
        if (self.image is None) == (self.error is None):
            raise ValueError("exactly one of image or error must be set")
        return self

    @classmethod
    def success(cls, image: str) -> "RenderResponse":
        return cls(image=image)

    @classmethod
    def failure(cls, message: str) -> "RenderResponse":
        # Error responses always carry a message, and it must encode as UTF-8.
        message = message or "unknown error"
        return cls(error=message.encode("utf-8", "backslashreplace").decode("utf-8"))

    @property
    def ok(self) -> bool:
        return self.image is not None

    def to_bytes(self) -> bytes:
        """Serialize to the compact JSON body sent to the client."""
        return self.model_dump_json(exclude_none=True).encode("utf-8")
