"""GitHub Actions provider module."""

from octap.providers.github_actions.config import GitHubActionsConfig
from octap.providers.github_actions.provider import GitHubActionsProvider

__all__ = ["GitHubActionsConfig", "GitHubActionsProvider"]
