"""Base for models loaded from the configuration file."""

from pydantic import BaseModel, ConfigDict


class ConfigModel(BaseModel):
    """Immutable model rejecting keys it does not declare."""

    model_config = ConfigDict(frozen=True, extra="forbid")
