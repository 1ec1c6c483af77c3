"""Best-effort repository metadata from the local git checkout."""
from __future__ import annotations

import hashlib
import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from intentra import config

logger = logging.getLogger("intentra.git")


@dataclass(frozen=True)
class GitMetadata:
    repo_name: str = ""
    repo_url_hash: str = ""
    branch_name: str = ""


def repo_name_from_url(remote_url: str) -> str:
    """`git@github.com:org/app.git` and `https://host/org/app` both give `app`."""
    name = remote_url.rsplit("/", 1)[-1]
    name = name.rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def _git(args: list[str], cwd: Optional[Path], timeout: float) -> str:
    if timeout <= 0:
        return ""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("git %s failed: %s", " ".join(args), exc)
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def collect_git_metadata(cwd: Optional[Path] = None, timeout_ms: Optional[int] = None) -> GitMetadata:
    """Query origin URL and current branch within one shared time budget.

    Only a hash of the remote URL leaves the machine.
    """
    budget = (config.GIT_TIMEOUT_MS if timeout_ms is None else timeout_ms) / 1000.0
    deadline = time.monotonic() + budget

    repo_name = ""
    repo_url_hash = ""
    remote_url = _git(["remote", "get-url", "origin"], cwd, budget)
    if remote_url:
        repo_url_hash = hashlib.sha256(remote_url.encode("utf-8")).hexdigest()
        repo_name = repo_name_from_url(remote_url)

    branch = _git(["branch", "--show-current"], cwd, deadline - time.monotonic())
    return GitMetadata(repo_name=repo_name, repo_url_hash=repo_url_hash, branch_name=branch)
