"""Repository identity."""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class Repository:
    """A GitHub repository identified by owner and name."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        """Repository in owner/name format."""
        return f"{self.owner}/{self.name}"
