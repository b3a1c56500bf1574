"""Descriptor of the image a metadata call is about."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ImageInfo(BaseModel):
    """Basic facts about the subject image."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    width: int
    height: int
    format: str  # jpg, png, webp, ...
    size_bytes: int = Field(validation_alias=AliasChoices("size_bytes", "size"))
    filename: str
