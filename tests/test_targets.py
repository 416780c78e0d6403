import os
import stat

import pytest

from releasekit.targets import (
    GoBuild,
    IgnoredBuild,
    Target,
    all_build_targets,
    is_go116,
    is_ignored,
    is_valid,
    matrix,
)


@pytest.fixture
def fake_go(tmp_path):
    script = tmp_path / "fakego"
    script.write_text('#!/bin/sh\necho "go version go1.16.5 linux/amd64"\n')
    script.chmod(script.stat().st_mode | stat.S_IEXEC | stat.S_IXGRP | stat.S_IXOTH)
    return os.fspath(script)


def test_all_build_targets_matrix(fake_go):
    build = GoBuild(
        go_binary=fake_go,
        goos=["linux", "darwin", "freebsd", "openbsd", "windows", "js"],
        goarch=[
            "386",
            "amd64",
            "arm",
            "arm64",
            "wasm",
            "mips",
            "mips64",
            "mipsle",
            "mips64le",
            "riscv64",
        ],
        goarm=["6", "7"],
        gomips=["hardfloat", "softfloat"],
        ignore=[
            IgnoredBuild(goos="linux", goarch="arm", goarm="7"),
            IgnoredBuild(goos="openbsd", goarch="arm"),
            IgnoredBuild(goarch="mips64", gomips="hardfloat"),
            IgnoredBuild(goarch="mips64le", gomips="softfloat"),
        ],
    )
    assert matrix(build) == [
        "linux_386",
        "linux_amd64",
        "linux_arm_6",
        "linux_arm64",
        "linux_mips_hardfloat",
        "linux_mips_softfloat",
        "linux_mips64_softfloat",
        "linux_mipsle_hardfloat",
        "linux_mipsle_softfloat",
        "linux_mips64le_hardfloat",
        "linux_riscv64",
        "darwin_amd64",
        "darwin_arm64",
        "freebsd_386",
        "freebsd_amd64",
        "freebsd_arm_6",
        "freebsd_arm_7",
        "freebsd_arm64",
        "openbsd_386",
        "openbsd_amd64",
        "openbsd_arm64",
        "windows_386",
        "windows_amd64",
        "windows_arm_6",
        "windows_arm_7",
        "js_wasm",
    ]


def test_darwin_arm64_skipped_without_go116(tmp_path):
    build = GoBuild(
        go_binary=os.fspath(tmp_path / "missing-go"),
        goos=["darwin"],
        goarch=["amd64", "arm64"],
    )
    assert matrix(build) == ["darwin_amd64"]


def test_is_go116(fake_go, tmp_path):
    assert is_go116(GoBuild(go_binary=fake_go)) is True
    assert is_go116(GoBuild(go_binary=os.fspath(tmp_path / "nope"))) is False


@pytest.mark.parametrize(
    "goos,goarch,expected",
    [
        ("aix", "ppc64", True),
        ("android", "386", True),
        ("android", "amd64", True),
        ("android", "arm", True),
        ("android", "arm64", True),
        ("darwin", "amd64", True),
        ("darwin", "arm64", True),
        ("dragonfly", "amd64", True),
        ("freebsd", "386", True),
        ("freebsd", "amd64", True),
        ("freebsd", "arm", True),
        ("illumos", "amd64", True),
        ("linux", "386", True),
        ("linux", "amd64", True),
        ("linux", "arm", True),
        ("linux", "arm64", True),
        ("linux", "mips", True),
        ("linux", "mipsle", True),
        ("linux", "mips64", True),
        ("linux", "mips64le", True),
        ("linux", "ppc64", True),
        ("linux", "ppc64le", True),
        ("linux", "s390x", True),
        ("linux", "riscv64", True),
        ("netbsd", "386", True),
        ("netbsd", "amd64", True),
        ("netbsd", "arm", True),
        ("openbsd", "386", True),
        ("openbsd", "amd64", True),
        ("openbsd", "arm", True),
        ("plan9", "386", True),
        ("plan9", "amd64", True),
        ("plan9", "arm", True),
        ("solaris", "amd64", True),
        ("windows", "386", True),
        ("windows", "amd64", True),
        ("windows", "arm", True),
        ("js", "wasm", True),
        ("darwin", "386", False),
        ("darwin", "arm", False),
        ("windows", "arm64", False),
        ("windows", "riscv64", False),
    ],
)
def test_goos_goarch_combos(goos, goarch, expected):
    assert is_valid(Target(goos, goarch)) is expected


def test_target_str():
    assert str(Target("linux", "amd64")) == "linux_amd64"
    assert str(Target("linux", "arm", arm="7")) == "linux_arm_7"
    assert str(Target("linux", "mips", mips="softfloat")) == "linux_mips_softfloat"


def test_all_build_targets_order():
    build = GoBuild(
        goos=["linux"],
        goarch=["arm", "mipsle", "amd64"],
        goarm=["5", "6"],
        gomips=["softfloat"],
    )
    assert all_build_targets(build) == [
        Target("linux", "arm", arm="5"),
        Target("linux", "arm", arm="6"),
        Target("linux", "mipsle", mips="softfloat"),
        Target("linux", "amd64"),
    ]


def test_is_ignored():
    build = GoBuild(ignore=[IgnoredBuild(goos="linux", goarch="arm", goarm="7")])
    assert is_ignored(build, Target("linux", "arm", arm="7")) is True
    assert is_ignored(build, Target("linux", "arm", arm="6")) is False
    assert is_ignored(build, Target("darwin", "arm", arm="7")) is False
    assert is_ignored(GoBuild(), Target("linux", "amd64")) is False


@pytest.mark.parametrize(
    "build,message",
    [
        (GoBuild(goos=["linux", "darwim"], goarch=["amd64"]), "invalid goos: darwim"),
        (GoBuild(goos=["linux"], goarch=["amd64", "i386"]), "invalid goarch: i386"),
        (GoBuild(goos=["linux"], goarch=["arm"], goarm=["6", "9"]), "invalid goarm: 9"),
        (
            GoBuild(goos=["linux"], goarch=["mips"], gomips=["softfloat", "mehfloat"]),
            "invalid gomips: mehfloat",
        ),
    ],
)
def test_matrix_invalid(build, message):
    with pytest.raises(ValueError) as excinfo:
        matrix(build)
    assert str(excinfo.value) == message