"""Storage and filtering of the artifacts produced during a release."""

from __future__ import annotations

import hashlib
import logging
import threading
import zlib
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Iterator

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class ArtifactType(IntEnum):
    """Kind of an artifact."""

    UPLOADABLE_ARCHIVE = 0
    UPLOADABLE_BINARY = 1
    UPLOADABLE_FILE = 2
    BINARY = 3
    LINUX_PACKAGE = 4
    PUBLISHABLE_SNAPCRAFT = 5
    SNAPCRAFT = 6
    PUBLISHABLE_DOCKER_IMAGE = 7
    DOCKER_IMAGE = 8
    DOCKER_MANIFEST = 9
    CHECKSUM = 10
    SIGNATURE = 11
    UPLOADABLE_SOURCE_ARCHIVE = 12

    def __str__(self) -> str:
        return _TYPE_LABELS.get(self, "unknown")


_TYPE_LABELS = {
    ArtifactType.UPLOADABLE_ARCHIVE: "Archive",
    ArtifactType.UPLOADABLE_FILE: "File",
    ArtifactType.UPLOADABLE_BINARY: "Binary",
    ArtifactType.BINARY: "Binary",
    ArtifactType.LINUX_PACKAGE: "Linux Package",
    ArtifactType.PUBLISHABLE_DOCKER_IMAGE: "Docker Image",
    ArtifactType.DOCKER_IMAGE: "Docker Image",
    ArtifactType.DOCKER_MANIFEST: "Docker Manifest",
    ArtifactType.PUBLISHABLE_SNAPCRAFT: "Snap",
    ArtifactType.SNAPCRAFT: "Snap",
    ArtifactType.CHECKSUM: "Checksum",
    ArtifactType.SIGNATURE: "Signature",
    ArtifactType.UPLOADABLE_SOURCE_ARCHIVE: "Source",
}


class _Crc32:
    """Incremental IEEE CRC-32 with a hashlib-like interface."""

    def __init__(self) -> None:
        self._value = 0

    def update(self, data: bytes) -> None:
        self._value = zlib.crc32(data, self._value)

    def hexdigest(self) -> str:
        return f"{self._value & 0xFFFFFFFF:08x}"


_HASHES: dict[str, Callable[[], Any]] = {
    "crc32": _Crc32,
    "md5": hashlib.md5,
    "sha224": hashlib.sha224,
    "sha384": hashlib.sha384,
    "sha256": hashlib.sha256,
    "sha1": hashlib.sha1,
    "sha512": hashlib.sha512,
}


@dataclass
class Artifact:
    """A file or image produced by the release process."""

    name: str = ""
    path: str = ""
    goos: str = ""
    goarch: str = ""
    goarm: str = ""
    gomips: str = ""
    type: ArtifactType = ArtifactType.UPLOADABLE_ARCHIVE
    extra: dict[str, Any] = field(default_factory=dict)

    def extra_or(self, key: str, default: Any) -> Any:
        """Return the extra value for ``key``, or ``default`` when it is unset."""
        value = self.extra.get(key) if self.extra else None
        return default if value is None else value

    def checksum(self, algorithm: str) -> str:
        """Return the hex digest of the artifact file using ``algorithm``."""
        logger.debug("calculating checksum for %s", self.path)
        try:
            handle = open(self.path, "rb")
        except OSError as err:
            raise OSError(f"failed to checksum: {err}") from err
        with handle:
            factory = _HASHES.get(algorithm)
            if factory is None:
                raise ValueError(f"invalid algorithm: {algorithm}")
            digest = factory()
            try:
                for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                    digest.update(chunk)
            except OSError as err:
                raise OSError(f"failed to checksum: {err}") from err
        return digest.hexdigest()


Predicate = Callable[[Artifact], bool]


class Artifacts:
    """A thread-safe list of artifacts."""

    def __init__(self, items: list[Artifact] | None = None) -> None:
        self._items: list[Artifact] = list(items or [])
        self._lock = threading.Lock()

    def __iter__(self) -> Iterator[Artifact]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._items)

    def list(self) -> list[Artifact]:
        """Return the artifacts in insertion order."""
        with self._lock:
            return list(self._items)

    def group_by_platform(self) -> dict[str, list[Artifact]]:
        """Group the artifacts by their concatenated platform fields."""
        groups: dict[str, list[Artifact]] = {}
        for item in self.list():
            key = item.goos + item.goarch + item.goarm + item.gomips
            groups.setdefault(key, []).append(item)
        return groups

    def add(self, artifact: Artifact) -> None:
        """Append an artifact to the list."""
        with self._lock:
            logger.debug(
                "added new artifact name=%s path=%s type=%s",
                artifact.name,
                artifact.path,
                artifact.type,
            )
            self._items.append(artifact)

    def filter(self, predicate: Predicate | None) -> "Artifacts":
        """Return a new list with the artifacts matching ``predicate``."""
        items = self.list()
        if predicate is None:
            return Artifacts(items)
        return Artifacts([item for item in items if predicate(item)])

    def paths(self) -> list[str]:
        """Return the paths of all artifacts."""
        return [item.path for item in self.list()]


def by_goos(goos: str) -> Predicate:
    """Match artifacts built for the given OS."""
    return lambda a: a.goos == goos


def by_goarch(goarch: str) -> Predicate:
    """Match artifacts built for the given architecture."""
    return lambda a: a.goarch == goarch


def by_goarm(goarm: str) -> Predicate:
    """Match artifacts built for the given ARM version."""
    return lambda a: a.goarm == goarm


def by_type(artifact_type: ArtifactType) -> Predicate:
    """Match artifacts of the given type."""
    return lambda a: a.type == artifact_type


def by_formats(*args: str) -> Predicate:
    """Match artifacts whose ``Format`` extra is one of the given formats."""
    return any_of(*(_format_is(fmt) for fmt in args))


def _format_is(fmt: str) -> Predicate:
    return lambda a: a.extra_or("Format", "") == fmt


def by_ids(*args: str) -> Predicate:
    """Match artifacts by their ``ID`` extra; checksums and sources always match."""
    return any_of(*(_id_is(ident) for ident in args))


def _id_is(ident: str) -> Predicate:
    return lambda a: (
        a.type in (ArtifactType.CHECKSUM, ArtifactType.UPLOADABLE_SOURCE_ARCHIVE)
        or a.extra_or("ID", "") == ident
    )


def any_of(*args: Predicate) -> Predicate:
    """Match when any of the given predicates matches."""
    return lambda a: any(p(a) for p in args)


def all_of(*args: Predicate) -> Predicate:
    """Match when all of the given predicates match."""
    return lambda a: all(p(a) for p in args)