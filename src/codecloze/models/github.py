"""GitHub-related Pydantic models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..errors import MissingRequiredField

FILE_HEADER_MARKER = "diff --git "
HUNK_HEADER_MARKER = "@@"


class _Permissive(BaseModel):
    """Webhook sub-object: unknown keys allowed, every field optional."""

    model_config = ConfigDict(extra="allow")


class User(_Permissive):
    """GitHub user model."""
    login: Optional[str] = None


class Repository(_Permissive):
    """GitHub repository model."""
    name: Optional[str] = None
    owner: Optional[User] = None


class Comment(_Permissive):
    """Issue comment model."""
    body: Optional[str] = None


class Issue(_Permissive):
    """Issue (or pull request) the comment was made on."""
    number: Optional[int] = None
    pull_request: Optional[Dict[str, Any]] = None


class Installation(_Permissive):
    """GitHub App installation reference."""
    id: Optional[int] = None


class InvocationContext(BaseModel):
    """Identifiers needed to call GitHub on behalf of an invocation."""

    model_config = ConfigDict(frozen=True)

    installation_id: int
    owner: str
    repo: str
    issue_number: int

    @property
    def request_id(self) -> str:
        return f"{self.owner}/{self.repo}#{self.issue_number}"


class WebhookPayload(_Permissive):
    """``issue_comment`` webhook payload.

    Fields are optional so that a payload of an unexpected shape can still be
    filtered; the accessors below report the first absent field with
    ``MissingRequiredField``.
    """
    action: Optional[str] = None
    comment: Optional[Comment] = None
    issue: Optional[Issue] = None
    installation: Optional[Installation] = None
    repository: Optional[Repository] = None

    @property
    def comment_body(self) -> str:
        if self.comment is None or self.comment.body is None:
            return ""
        return self.comment.body

    @property
    def is_pull_request(self) -> bool:
        """Comments on pull requests carry a ``pull_request`` marker, even ``{}``."""
        return self.issue is not None and self.issue.pull_request is not None

    @property
    def installation_id(self) -> int:
        value = self.installation.id if self.installation else None
        if not value:
            raise MissingRequiredField("installation.id")
        return value

    @property
    def owner(self) -> str:
        owner = self.repository.owner if self.repository else None
        value = owner.login if owner else None
        if not value:
            raise MissingRequiredField("repository.owner.login")
        return value

    @property
    def repo(self) -> str:
        value = self.repository.name if self.repository else None
        if not value:
            raise MissingRequiredField("repository.name")
        return value

    @property
    def issue_number(self) -> int:
        value = self.issue.number if self.issue else None
        if not value:
            raise MissingRequiredField("issue.number")
        return value

    def invocation_context(self) -> InvocationContext:
        """Collect the required identifiers or raise ``MissingRequiredField``."""
        return InvocationContext(
            installation_id=self.installation_id,
            owner=self.owner,
            repo=self.repo,
            issue_number=self.issue_number,
        )


class Diff(BaseModel):
    """Unified diff of a pull request and the statistics derived from it."""

    model_config = ConfigDict(frozen=True)

    text: str

    @property
    def byte_length(self) -> int:
        return len(self.text.encode("utf-8"))

    @property
    def file_count(self) -> int:
        return self._count_lines_starting_with(FILE_HEADER_MARKER)

    @property
    def hunk_count(self) -> int:
        return self._count_lines_starting_with(HUNK_HEADER_MARKER)

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "byte_length": self.byte_length,
            "file_count": self.file_count,
            "hunk_count": self.hunk_count,
        }

    def _count_lines_starting_with(self, marker: str) -> int:
        return sum(1 for line in self.text.splitlines() if line.startswith(marker))
