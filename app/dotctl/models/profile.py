"""Profile models.

A profile (``profiles/<name>/profile.yaml``, kind ``Profile/v1``) selects a
set of bundles, may include other profiles and may carry conditional rules
that add includes or apps, or exclude apps, on matching platforms.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dotctl.core.schema import make_kind
from dotctl.models.bundle import validate_bundle_name

PROFILE_KIND = make_kind("Profile")


class ProfileCondition(BaseModel):
    """Conditional rule evaluated against platform facts.

    Attributes:
        condition: Condition expression (``if`` in YAML).
        includes: Extra profiles to include when the condition holds.
        include_apps: Extra apps to add when the condition holds.
        exclude_apps: Apps to drop when the condition holds.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    condition: Annotated[str, Field(alias="if", min_length=1, description="Condition")]
    includes: Annotated[list[str], Field(default_factory=list)]
    include_apps: Annotated[list[str], Field(default_factory=list)]
    exclude_apps: Annotated[list[str], Field(default_factory=list)]


class Profile(BaseModel):
    """Named selection of bundles.

    Attributes:
        kind: Schema header ("Profile/v1").
        name: Profile identifier (also its directory name).
        description: Human-readable description.
        includes: Profiles applied before this one.
        apps: Bundles selected by this profile.
        conditions: Ordered conditional rules.
    """

    model_config = ConfigDict(extra="forbid")

    kind: Annotated[str, Field(description="Schema kind header")] = PROFILE_KIND
    name: Annotated[str, Field(description="Profile identifier")]
    description: Annotated[str | None, Field(description="Profile description")] = None
    includes: Annotated[list[str], Field(default_factory=list)]
    apps: Annotated[list[str], Field(default_factory=list)]
    conditions: Annotated[list[ProfileCondition], Field(default_factory=list)]

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return validate_bundle_name(value)
