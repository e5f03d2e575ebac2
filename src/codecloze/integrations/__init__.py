"""Integrations with the GitHub API."""

from .github_app import GitHubAppCredentials
from .github_client import GitHubClient

__all__ = ["GitHubAppCredentials", "GitHubClient"]
