"""Machine-local state model (``state.yaml``, kind ``State/v1``).

State records which profiles are currently applied on this machine and
when. It is git-ignored; the repository stays authoritative for what can
be applied.
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from dotctl.core.schema import make_kind

STATE_KIND = make_kind("State")


class AppliedProfile(BaseModel):
    """A profile applied on this machine.

    Attributes:
        name: Profile name.
        apps: Apps the profile resolved to when applied.
        applied_at: When the profile was last applied.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(description="Profile name")]
    apps: Annotated[list[str], Field(default_factory=list)]
    applied_at: Annotated[datetime, Field(description="Last apply time")]


class State(BaseModel):
    """Applied profiles and last apply time."""

    model_config = ConfigDict(extra="forbid")

    kind: Annotated[str, Field(description="Schema kind header")] = STATE_KIND
    applied_profiles: Annotated[list[AppliedProfile], Field(default_factory=list)]
    last_applied: Annotated[datetime | None, Field(description="Last apply time")] = None

    def add_profile(self, name: str, apps: list[str], when: datetime | None = None) -> None:
        """Record ``name`` as applied, replacing an existing entry in place.

        Args:
            name: Profile name.
            apps: Apps the profile resolved to.
            when: Apply time (default: now, UTC).
        """
        applied_at = when if when is not None else datetime.now(UTC)
        entry = AppliedProfile(name=name, apps=list(apps), applied_at=applied_at)
        for index, existing in enumerate(self.applied_profiles):
            if existing.name == name:
                self.applied_profiles[index] = entry
                break
        else:
            self.applied_profiles.append(entry)
        self.last_applied = applied_at

    @property
    def profile_names(self) -> list[str]:
        return [p.name for p in self.applied_profiles]

    @property
    def app_names(self) -> list[str]:
        """Deduplicated apps across all applied profiles, in first-seen order."""
        seen: dict[str, None] = {}
        for profile in self.applied_profiles:
            for app in profile.apps:
                seen.setdefault(app, None)
        return list(seen)
