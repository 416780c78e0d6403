# releasekit

Building blocks for automating software releases: tracking produced
artifacts, expanding Go build target matrices, talking to git, running custom
publisher commands and creating releases on Gitea, GitHub and GitLab.

## Installation

```
pip install releasekit
```

For running the test suite:

```
pip install "releasekit[test]"
pytest
```

## Overview

| Module | Purpose |
| --- | --- |
| `releasekit.artifact` | `Artifact`, `ArtifactType` and the thread-safe `Artifacts` list with composable filters (`by_goos`, `by_goarch`, `by_goarm`, `by_type`, `by_formats`, `by_ids`, `any_of`, `all_of`) and file checksums |
| `releasekit.git` | run git commands (`run`, `run_env`), detect repositories (`is_repo`), extract `owner/name` from remotes |
| `releasekit.extrafiles` | resolve `ExtraFile` globs into a name-to-path mapping with `find` |
| `releasekit.deprecate` | log standard deprecation warnings and flag a context as deprecated |
| `releasekit.exiterror` | `ExitError` carrying an exit code and details |
| `releasekit.targets` | expand a `GoBuild`'s os/arch/arm/mips lists into valid, non-ignored targets |
| `releasekit.client` | shared client types (`Repo`, `CommitAuthor`, `ReleaseInfo`, `TokenType`) and errors |
| `releasekit.gitea`, `releasekit.github`, `releasekit.gitlab` | `GiteaClient`, `GitHubClient` and `GitLabClient` for releases, files, milestones and uploads |
| `releasekit.publish` | select artifacts for a publisher and run its `Command` |

## Examples

Collect and filter artifacts:

```python
from releasekit.artifact import Artifact, ArtifactType, Artifacts, all_of, by_goos, by_type

artifacts = Artifacts()
artifacts.add(Artifact(name="app.tar.gz", path="dist/app.tar.gz", goos="linux",
                       goarch="amd64", type=ArtifactType.UPLOADABLE_ARCHIVE))
linux_archives = artifacts.filter(all_of(by_goos("linux"),
                                         by_type(ArtifactType.UPLOADABLE_ARCHIVE)))
print(linux_archives.paths())
print(artifacts.list()[0].checksum("sha256"))
```

`checksum` accepts `crc32`, `md5`, `sha1`, `sha224`, `sha256`, `sha384` and
`sha512`.

Expand a build matrix:

```python
from releasekit.targets import GoBuild, matrix

build = GoBuild(goos=["linux", "windows"], goarch=["amd64", "arm"], goarm=["6", "7"])
print(matrix(build))
# ['linux_amd64', 'linux_arm_6', 'linux_arm_7', 'windows_amd64', 'windows_arm_6', 'windows_arm_7']
```

A `darwin_arm64` target is only kept when the build's `go_binary` reports
Go 1.16.

Work out the repository from a remote URL:

```python
from releasekit.git import extract_repo_from_url

repo = extract_repo_from_url("git@example.com:owner/project.git")
print(repo)  # owner/project
```

Create or update a release:

```python
from releasekit.client import ReleaseInfo
from releasekit.github import GitHubClient

client = GitHubClient(token="token")
info = ReleaseInfo(owner="owner", name="project", tag="v1.0.0", title="v1.0.0")
release_id = client.create_release(info, "release notes")
```

Run a publisher command over selected artifacts:

```python
from releasekit.publish import Command, execute_command, filter_artifacts

for item in filter_artifacts(artifacts, checksum=True):
    execute_command(Command(args=["echo", item.name], env=["TARGET=staging"]))
```

Only `HOME`, `USER`, `USERPROFILE`, `TMPDIR`, `TMP`, `TEMP` and `PATH` are
passed through from the environment, plus the command's own `env` entries.

## Errors

Errors are raised as exceptions: `GitError` for failed git commands,
`ValueError` for invalid targets or checksum algorithms, `FileNotFoundError`
from `find` for globs that match nothing, `MilestoneNotFoundError` and
`RetriableError` from the forge clients, `RuntimeError` for failed publisher
commands, and `ExitError` where a specific process exit code must be reported.

## What this package does not do

It is a library only: there is no command-line tool and no configuration file
loading. It does not compile anything — it computes build target names but
does not invoke the Go toolchain to build binaries. Release names are taken
as given in `ReleaseInfo.title`; no templating is applied to them.