"""Watch the GitHub Actions runs of a commit and notify when they finish."""

__version__ = "0.1.0"
