"""
Git metadata used to enrich notifications.

Extraction is best effort: if git is missing or the working directory is not
a repository, no metadata is attached.
"""

import subprocess
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

GIT_TIMEOUT_SECONDS = 5


@dataclass(frozen=True)
class GitMetadata:
    committer: str = ""
    commit_sha: str = ""
    branch: str = ""
    repo_url: str = ""

    def is_empty(self) -> bool:
        return not (self.committer or self.commit_sha or self.branch or self.repo_url)

    def to_dict(self) -> Dict[str, str]:
        return {key: value for key, value in asdict(self).items() if value}


def _run_git(args: List[str], cwd: Optional[str] = None) -> str:
    """Run a git command and return its trimmed output, or "" on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            check=True,
        )
    except (OSError, subprocess.SubprocessError):
        return ""
    return result.stdout.strip()


def extract(cwd: Optional[str] = None) -> Optional[GitMetadata]:
    """
    Extracts git metadata from the given (or current) directory.

    Returns:
        GitMetadata, or None if git is unavailable or this is not a repository
    """
    commit_sha = _run_git(["rev-parse", "HEAD"], cwd)
    if not commit_sha:
        return None

    return GitMetadata(
        committer=_run_git(["config", "user.name"], cwd),
        commit_sha=commit_sha,
        branch=_run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd),
        repo_url=_run_git(["config", "--get", "remote.origin.url"], cwd),
    )
