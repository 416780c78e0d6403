"""Running custom publisher commands over release artifacts."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import Iterable

from releasekit.artifact import (
    Artifact,
    Artifacts,
    ArtifactType,
    all_of,
    any_of,
    by_ids,
    by_type,
)

logger = logging.getLogger(__name__)

PASSTHROUGH_ENV_VARS = ("HOME", "USER", "USERPROFILE", "TMPDIR", "TMP", "TEMP", "PATH")

_PUBLISHABLE_TYPES = (
    ArtifactType.UPLOADABLE_ARCHIVE,
    ArtifactType.UPLOADABLE_FILE,
    ArtifactType.LINUX_PACKAGE,
    ArtifactType.UPLOADABLE_BINARY,
)


@dataclass
class Command:
    """A resolved publisher command: arguments, extra environment and directory."""

    args: list[str]
    env: list[str] = field(default_factory=list)
    dir: str = ""


def filter_artifacts(
    artifacts: Artifacts,
    ids: Iterable[str] = (),
    checksum: bool = False,
    signature: bool = False,
) -> list[Artifact]:
    """Select the artifacts a publisher acts on."""
    types = list(_PUBLISHABLE_TYPES)
    if checksum:
        types.append(ArtifactType.CHECKSUM)
    if signature:
        types.append(ArtifactType.SIGNATURE)
    predicate = any_of(*(by_type(t) for t in types))
    ids = list(ids)
    if ids:
        predicate = all_of(predicate, by_ids(*ids))
    return artifacts.filter(predicate).list()


def _environment(extra: Iterable[str]) -> dict[str, str]:
    env = {key: os.environ[key] for key in PASSTHROUGH_ENV_VARS if os.environ.get(key)}
    for entry in extra:
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def execute_command(command: Command) -> None:
    """Run ``command`` with a minimal environment, logging its output."""
    if not command.args:
        raise ValueError("publishing: empty command")
    name = command.args[0]
    env = _environment(command.env)
    logger.debug("executing command args=%s env=%s", command.args, command.env)
    logger.info("publishing cmd=%s", name)
    try:
        result = subprocess.run(
            command.args,
            env=env,
            cwd=command.dir or None,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as err:
        raise RuntimeError(f"publishing: {name} failed: {err}") from err
    for line in result.stdout.splitlines():
        logger.info("%s: %s", name, line)
    for line in result.stderr.splitlines():
        logger.error("%s: %s", name, line)
    if result.returncode != 0:
        if result.returncode < 0:
            reason = f"signal: {-result.returncode}"
        else:
            reason = f"exit status {result.returncode}"
        raise RuntimeError(f"publishing: {name} failed: {reason}")
    logger.debug("command %s finished successfully", name)