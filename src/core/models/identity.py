"""Authenticated caller model."""

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class CallerIdentity(BaseModel):
    """Principal derived from a verified access token for one request."""

    model_config = ConfigDict(frozen=True)

    subject: StrictStr = Field(..., min_length=1, description="Stable ownership key (`sub`)")
    first_name: StrictStr | None = Field(None, description="`given_name` claim")
    last_name: StrictStr | None = Field(None, description="`family_name` claim")
    email: StrictStr | None = Field(None, description="`email` claim")
    permission_level: int | None = Field(None, description="`x_permission_level` claim")
