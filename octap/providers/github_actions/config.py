"""Configuration for GitHub Actions provider."""

from pydantic import BaseModel, SecretStr


class GitHubActionsConfig(BaseModel):
    """Configuration for GitHub Actions provider."""

    owner: str
    repo: str
    token: SecretStr | None = None
    api_base_url: str = "https://api.github.com"
    per_page: int = 100
