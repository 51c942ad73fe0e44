"""Common Pydantic v2 schemas shared across the API."""

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for request/response bodies exchanged with the upload client in camelCase."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(alias=to_camel),
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(CamelModel):
    """Standard error body for pipeline errors."""

    error: str = Field(description="Stable error category")
    message: str = Field(description="Human-readable, actionable message")
    status_code: int = Field(description="HTTP status code")
    kind: str | None = Field(default=None, description="Machine-readable error kind")
    missing_images: list[str] | None = Field(default=None, description="Images to attach and resubmit")
    requires_image_upload: bool | None = Field(default=None, description="True when missing_images is set")
    video_extensions: list[str] | None = Field(default=None, description="Forbidden video extensions found")
