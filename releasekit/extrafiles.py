"""Resolution of extra file globs into named paths."""

from __future__ import annotations

import glob
import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

_MAGIC = re.compile(r"[*?\[]")


@dataclass(frozen=True)
class ExtraFile:
    """A glob selecting extra files to ship."""

    glob: str = ""


def _expand(pattern: str) -> Iterator[str]:
    """Yield the files matching ``pattern``; matched directories are walked."""
    if not _MAGIC.search(pattern) and not os.path.exists(pattern):
        raise FileNotFoundError(f'matching "{pattern}": file does not exist')
    seen: set[str] = set()
    for match in sorted(glob.glob(pattern, recursive=True)):
        candidates = [match]
        if os.path.isdir(match):
            candidates = [
                os.path.join(root, name)
                for root, dirs, names in os.walk(match)
                for name in sorted(names)
            ]
        for candidate in candidates:
            normalized = os.path.normpath(candidate)
            if normalized not in seen:
                seen.add(normalized)
                yield normalized


def find(files: Iterable[ExtraFile]) -> dict[str, str]:
    """Map base names to paths for every file matched by the given globs."""
    result: dict[str, str] = {}
    for extra in files:
        if not extra.glob:
            continue
        try:
            matches = list(_expand(extra.glob))
        except FileNotFoundError as err:
            raise FileNotFoundError(
                f"globbing failed for pattern {extra.glob}: {err}"
            ) from err
        for path in matches:
            if os.path.isdir(path):
                logger.debug("ignoring directory %s", path)
                continue
            name = os.path.basename(path)
            if name in result:
                logger.warning("overriding %s with %s for name %s", result[name], path, name)
            result[name] = path
    return result