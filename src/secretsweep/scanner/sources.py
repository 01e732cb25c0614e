"""Scan sources: request validation, clone URLs and remote fetching.

A scan targets one of three sources:
- local: an existing directory
- remote-git: any git URL, optionally authenticated with a token
- remote-azure-devops: an Azure DevOps repository addressed by
  organization, project and repository name

Remote sources are shallow-cloned into an ephemeral workspace that is
removed when the scan finishes, whether it succeeded or not.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess  # nosec B404
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from secretsweep.scanner.base import FetchError, SourceError

logger = logging.getLogger(__name__)

AZURE_DEVOPS_BASE = "https://dev.azure.com"
WORKSPACE_PREFIX = "secretsweep-"


class SourceType(str, Enum):
    """Where the files to scan come from."""

    LOCAL = "local"
    REMOTE_GIT = "remote-git"
    AZURE_DEVOPS = "remote-azure-devops"


SOURCE_ALIASES: dict[str, str] = {
    "github": SourceType.REMOTE_GIT.value,
    "git": SourceType.REMOTE_GIT.value,
    "azure-devops": SourceType.AZURE_DEVOPS.value,
    "azure": SourceType.AZURE_DEVOPS.value,
}


class ScanRequest(BaseModel):
    """Parameters of one scan invocation.

    Accepts both snake_case names and the short names used by web clients
    (``repoUrl``, ``org``, ``repo``, ``pat``).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    source: SourceType
    path: str | None = None
    repo_url: str | None = Field(
        default=None, validation_alias=AliasChoices("repo_url", "repoUrl")
    )
    token: SecretStr | None = Field(
        default=None, validation_alias=AliasChoices("token", "pat")
    )
    organization: str | None = Field(
        default=None, validation_alias=AliasChoices("organization", "org")
    )
    project: str | None = None
    repository: str | None = Field(
        default=None, validation_alias=AliasChoices("repository", "repo")
    )

    @field_validator("source", mode="before")
    @classmethod
    def _normalize_source(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().lower()
            return SOURCE_ALIASES.get(normalized, normalized)
        return value

    @field_validator(
        "path", "repo_url", "token", "organization", "project", "repository", mode="before"
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def _check_required_fields(self) -> ScanRequest:
        if self.source == SourceType.LOCAL and not self.path:
            raise ValueError("Local scans require a directory path")
        if self.source == SourceType.REMOTE_GIT and not self.repo_url:
            raise ValueError("Repository URL is required")
        if self.source == SourceType.AZURE_DEVOPS and not (
            self.organization and self.project and self.repository and self.token
        ):
            raise ValueError(
                "Azure DevOps requires: organization URL, project, repository name, and access token"
            )
        return self

    @property
    def is_remote(self) -> bool:
        return self.source != SourceType.LOCAL

    @property
    def token_value(self) -> str | None:
        return self.token.get_secret_value() if self.token else None

    def clone_url(self) -> str:
        """Authenticated clone URL for a remote source.

        Raises:
            SourceError: For local sources or malformed URLs.
        """
        if self.source == SourceType.REMOTE_GIT:
            return build_git_clone_url(str(self.repo_url), self.token_value)
        if self.source == SourceType.AZURE_DEVOPS:
            return build_azure_clone_url(
                str(self.organization),
                str(self.project),
                str(self.repository),
                str(self.token_value),
            )
        raise SourceError("Local sources are not cloned")

    def describe(self) -> str:
        """Short, token-free label for logs and messages."""
        if self.source == SourceType.LOCAL:
            return str(self.path)
        if self.source == SourceType.REMOTE_GIT:
            return str(self.repo_url)
        return f"{self.organization}/{self.project}/_git/{self.repository}"


def validation_message(error: ValidationError) -> str:
    """Turn a ScanRequest validation error into a single readable message."""
    for detail in error.errors():
        if tuple(detail.get("loc", ())) == ("source",):
            valid = ", ".join(source.value for source in SourceType)
            return f"Invalid source type. Use: {valid}"
        cause = detail.get("ctx", {}).get("error")
        if cause is not None:
            return str(cause)
        return str(detail.get("msg", "Invalid scan request"))
    return "Invalid scan request"


def build_git_clone_url(repo_url: str, token: str | None = None) -> str:
    """Inject a token into the authority of a git URL.

    Args:
        repo_url: Repository URL, e.g. https://github.com/org/repo.
        token: Optional access token for private repositories.

    Returns:
        ``https://<token>@<host>/<path>`` when a token is given, otherwise
        the URL unchanged.

    Raises:
        SourceError: If the URL has no host.
    """
    if not token:
        return repo_url

    parsed = urlsplit(repo_url)
    try:
        port = parsed.port
    except ValueError as e:
        raise SourceError(f"Invalid repository URL: {repo_url}") from e
    if not parsed.hostname:
        raise SourceError(f"Invalid repository URL: {repo_url}")

    host = f"{parsed.hostname}:{port}" if port else parsed.hostname
    netloc = f"{quote(token, safe='')}@{host}"
    return urlunsplit(("https", netloc, parsed.path, "", ""))


def build_azure_clone_url(organization: str, project: str, repository: str, token: str) -> str:
    """Compose an authenticated Azure DevOps clone URL.

    ``organization`` may be a bare name (``contoso``) or a full base URL
    (``https://dev.azure.com/contoso``).

    Returns:
        ``https://pat:<token>@dev.azure.com/<org>/<project>/_git/<repo>``
    """
    org_url = organization if organization.startswith("http") else f"{AZURE_DEVOPS_BASE}/{organization}"
    clone_url = f"{org_url.rstrip('/')}/{quote(project)}/_git/{quote(repository)}"
    return clone_url.replace("https://", f"https://pat:{quote(token, safe='')}@", 1)


def redact(text: str, secrets: tuple[str, ...]) -> str:
    """Replace every occurrence of the given secrets in ``text``."""
    for secret in secrets:
        if not secret:
            continue
        text = text.replace(secret, "****")
        quoted = quote(secret, safe="")
        if quoted != secret:
            text = text.replace(quoted, "****")
    return text


@contextmanager
def ephemeral_workspace(prefix: str = WORKSPACE_PREFIX) -> Iterator[Path]:
    """Create a temporary directory and always remove it afterwards."""
    workspace = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Created workspace %s", workspace)
    try:
        yield workspace
    finally:
        shutil.rmtree(workspace, ignore_errors=True)
        logger.debug("Removed workspace %s", workspace)


class RepoFetcher:
    """Shallow-clones remote repositories with the git CLI.

    Clones are attempted once. Any failure is raised as FetchError carrying
    git's own message with credentials removed.
    """

    def __init__(self, depth: int = 1, timeout: int = 300) -> None:
        self.depth = depth
        self.timeout = timeout

    def fetch(self, request: ScanRequest, dest: Path) -> None:
        """Clone the repository described by ``request`` into ``dest``."""
        secrets = (request.token_value,) if request.token_value else ()
        self.clone(request.clone_url(), dest, secrets=secrets)

    def clone(self, url: str, dest: Path, secrets: tuple[str, ...] = ()) -> None:
        """Run ``git clone --depth N url dest``.

        Raises:
            FetchError: If git is missing, times out or exits non-zero.
        """
        args = ["git", "clone", "--depth", str(self.depth), url, str(dest)]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

        try:
            result = subprocess.run(  # nosec B603, B607
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise FetchError(f"Clone timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise FetchError("git not found. Remote scans require git on PATH.") from e

        if result.returncode != 0:
            message = (result.stderr or "").strip() or (result.stdout or "").strip()
            message = message or f"git exited with code {result.returncode}"
            raise FetchError(redact(f"Clone failed: {message[:500]}", secrets))
