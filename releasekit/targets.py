"""Expansion and validation of Go build target matrices."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

VALID_TARGETS = frozenset(
    {
        "aixppc64",
        "android386",
        "androidamd64",
        "androidarm",
        "androidarm64",
        "darwinamd64",
        "darwinarm64",
        "dragonflyamd64",
        "freebsd386",
        "freebsdamd64",
        "freebsdarm",
        "freebsdarm64",
        "illumosamd64",
        "jswasm",
        "linux386",
        "linuxamd64",
        "linuxarm",
        "linuxarm64",
        "linuxppc64",
        "linuxppc64le",
        "linuxmips",
        "linuxmipsle",
        "linuxmips64",
        "linuxmips64le",
        "linuxs390x",
        "linuxriscv64",
        "netbsd386",
        "netbsdamd64",
        "netbsdarm",
        "openbsd386",
        "openbsdamd64",
        "openbsdarm",
        "openbsdarm64",
        "plan9386",
        "plan9amd64",
        "plan9arm",
        "solarisamd64",
        "windowsarm",
        "windows386",
        "windowsamd64",
    }
)

VALID_GOOS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "illumos",
        "js",
        "linux",
        "netbsd",
        "openbsd",
        "plan9",
        "solaris",
        "windows",
    }
)

VALID_GOARCH = frozenset(
    {
        "386",
        "amd64",
        "arm",
        "arm64",
        "mips",
        "mips64",
        "mips64le",
        "mipsle",
        "ppc64",
        "ppc64le",
        "s390x",
        "wasm",
        "riscv64",
    }
)

VALID_GOARM = frozenset({"5", "6", "7"})
VALID_GOMIPS = frozenset({"hardfloat", "softfloat"})


@dataclass(frozen=True)
class IgnoredBuild:
    """A platform combination to leave out; empty fields match anything."""

    goos: str = ""
    goarch: str = ""
    goarm: str = ""
    gomips: str = ""


@dataclass
class GoBuild:
    """Configuration of one Go build."""

    id: str = ""
    binary: str = ""
    go_binary: str = ""
    dir: str = ""
    main: str = ""
    goos: list[str] = field(default_factory=list)
    goarch: list[str] = field(default_factory=list)
    goarm: list[str] = field(default_factory=list)
    gomips: list[str] = field(default_factory=list)
    targets: list[str] = field(default_factory=list)
    ignore: list[IgnoredBuild] = field(default_factory=list)
    env: list[str] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)
    asmflags: list[str] = field(default_factory=list)
    gcflags: list[str] = field(default_factory=list)
    ldflags: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    mod_timestamp: str = ""


@dataclass(frozen=True)
class Target:
    """A single OS/architecture combination."""

    os: str
    arch: str
    arm: str = ""
    mips: str = ""

    def __str__(self) -> str:
        if self.arm:
            return f"{self.os}_{self.arch}_{self.arm}"
        if self.mips:
            return f"{self.os}_{self.arch}_{self.mips}"
        return f"{self.os}_{self.arch}"


def all_build_targets(build: GoBuild) -> list[Target]:
    """Return every combination of the build's OS and architecture lists."""
    targets: list[Target] = []
    for goos in build.goos:
        for goarch in build.goarch:
            if goarch == "arm":
                targets.extend(Target(goos, goarch, arm=arm) for arm in build.goarm)
            elif goarch.startswith("mips"):
                targets.extend(Target(goos, goarch, mips=mips) for mips in build.gomips)
            else:
                targets.append(Target(goos, goarch))
    return targets


def is_ignored(build: GoBuild, target: Target) -> bool:
    """Tell whether one of the build's ignore rules matches ``target``."""
    return any(
        (not ig.goos or ig.goos == target.os)
        and (not ig.goarch or ig.goarch == target.arch)
        and (not ig.goarm or ig.goarm == target.arm)
        and (not ig.gomips or ig.gomips == target.mips)
        for ig in build.ignore
    )


def is_go116(build: GoBuild) -> bool:
    """Tell whether the build's Go binary reports version 1.16."""
    try:
        result = subprocess.run(
            [build.go_binary, "version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError:
        return False
    return b"go version go1.16" in result.stdout


def is_valid(target: Target) -> bool:
    """Tell whether the OS/architecture pair is supported by Go."""
    return target.os + target.arch in VALID_TARGETS


def matrix(build: GoBuild) -> list[str]:
    """Return the names of all valid, non-ignored targets of the build."""
    go116: bool | None = None
    result: list[str] = []
    for target in all_build_targets(build):
        if target.os not in VALID_GOOS:
            raise ValueError(f"invalid goos: {target.os}")
        if target.arch not in VALID_GOARCH:
            raise ValueError(f"invalid goarch: {target.arch}")
        if target.arm and target.arm not in VALID_GOARM:
            raise ValueError(f"invalid goarm: {target.arm}")
        if target.mips and target.mips not in VALID_GOMIPS:
            raise ValueError(f"invalid gomips: {target.mips}")
        if target.os == "darwin" and target.arch == "arm64":
            if go116 is None:
                go116 = is_go116(build)
            if not go116:
                logger.warning(
                    "DEPRECATED: skipped darwin/arm64 build on Go < 1.16 for compatibility."
                )
                continue
        if not is_valid(target):
            logger.debug("skipped invalid build target=%s", target)
            continue
        if is_ignored(build, target):
            logger.debug("skipped ignored build target=%s", target)
            continue
        result.append(str(target))
    return result