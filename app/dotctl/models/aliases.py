"""Global aliases model (``aliases.yaml``, kind ``GlobalAliases/v1``)."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from dotctl.core.schema import make_kind

ALIASES_KIND = make_kind("GlobalAliases")


class GlobalAliases(BaseModel):
    """Aliases that belong to no bundle.

    Attributes:
        kind: Schema header ("GlobalAliases/v1").
        aliases: Alias name to command.
    """

    model_config = ConfigDict(extra="forbid")

    kind: Annotated[str, Field(description="Schema kind header")] = ALIASES_KIND
    aliases: Annotated[dict[str, str], Field(default_factory=dict)]
