"""Image record and upstream descriptor models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from pydantic.alias_generators import to_camel

# Storage-only fields, never part of the public representation
INTERNAL_FIELDS = frozenset({"record_id", "version"})


class ImageRecord(BaseModel):
    """Locally owned metadata for one caller-owned image.

    Field constraints (content type set, description length) are enforced by
    the metadata store on insert and update, not on construction, so a
    record built from an upstream response can always be handed to the store.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_id: StrictStr = Field(..., description="Upstream-assigned image identifier")
    image_url: StrictStr = Field(..., description="Canonical upstream image URL")
    content_type: StrictStr = Field(..., description="MIME type of the image")
    description: StrictStr | None = Field(None, description="Optional image description")
    owner_id: StrictStr = Field(..., description="Subject of the caller that created the image")

    created_at: StrictStr | None = Field(None, description="ISO-8601 creation timestamp (UTC)")
    updated_at: StrictStr | None = Field(None, description="ISO-8601 last update timestamp (UTC)")

    record_id: StrictStr | None = Field(None, description="Storage-assigned identifier")
    version: StrictInt | None = Field(None, description="Storage revision marker")

    def to_public(self) -> dict[str, Any]:
        """Serialize for API responses.

        Exposes the storage identifier as `id` and drops the revision marker.
        """
        body: dict[str, Any] = {"id": self.record_id}
        body.update(self.model_dump(by_alias=True, exclude=set(INTERNAL_FIELDS)))
        return body


class UpstreamImage(BaseModel):
    """Canonical image descriptor returned by the upstream image service."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: StrictStr = Field(..., min_length=1)
    image_url: StrictStr = Field(..., min_length=1)
    content_type: StrictStr = Field(..., min_length=1)

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
