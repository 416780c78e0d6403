"""Thin integration with the git command line."""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger(__name__)

_EXTRA_ARGS = ("-c", "log.showSignature=false")


class GitError(Exception):
    """A git command failed; the message is its standard error."""


@dataclass(frozen=True)
class Repo:
    """A repository identified by owner and name."""

    owner: str = ""
    name: str = ""

    def __str__(self) -> str:
        if not self.owner and not self.name:
            return ""
        return f"{self.owner}/{self.name}"


def run_env(env: Mapping[str, str] | None, *args: str) -> str:
    """Run git with exactly ``env`` as environment (or the inherited one)."""
    command = ["git", *_EXTRA_ARGS, *args]
    logger.debug("running git args=%s", command[1:])
    try:
        result = subprocess.run(
            command,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as err:
        raise GitError(str(err)) from err
    logger.debug("git result stdout=%r stderr=%r", result.stdout, result.stderr)
    if result.returncode != 0:
        raise GitError(result.stderr)
    return result.stdout


def run(*args: str) -> str:
    """Run a git command with the inherited environment."""
    return run_env(None, *args)


def is_repo() -> bool:
    """Tell whether the current folder is inside a git work tree."""
    try:
        out = run("rev-parse", "--is-inside-work-tree")
    except GitError:
        return False
    return out.strip() == "true"


def clean(output: str) -> str:
    """Keep the first line of ``output`` with single quotes removed."""
    return output.split("\n", 1)[0].replace("'", "")


def extract_repo_from_config() -> Repo:
    """Read the owner and name of the ``origin`` remote."""
    if not is_repo():
        raise GitError("current folder is not a git repository")
    try:
        out = run("config", "--get", "remote.origin.url")
    except GitError as err:
        raise GitError("repository doesn't have an `origin` remote") from err
    return extract_repo_from_url(out)


_STRIP = re.compile(r"\.git|\n")


def extract_repo_from_url(url: str) -> Repo:
    """Extract owner and name from an SSH or HTTP(S) remote URL."""
    stripped = _STRIP.sub("", url)
    stripped = stripped[stripped.rfind(":") + 1 :]
    parts = stripped.split("/")
    if len(parts) < 2:
        raise ValueError(f"cannot extract repository from {url!r}")
    return Repo(owner=parts[-2], name=parts[-1])