"""Release client for GitHub and GitHub Enterprise."""

from __future__ import annotations

import base64
import logging
import mimetypes
import re
from typing import Any
from urllib.parse import quote

import requests

from releasekit.artifact import Artifact
from releasekit.client import (
    CommitAuthor,
    MilestoneNotFoundError,
    ReleaseInfo,
    Repo,
    RetriableError,
)

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_DOWNLOAD_URL = "https://github.com"
DEFAULT_GITHUB_API_URL = "https://api.github.com/"
DEFAULT_GITHUB_UPLOAD_URL = "https://uploads.github.com/"

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_PER_PAGE = 100


def _parse_url(raw: str) -> str:
    """Validate ``raw`` the way a strict URL parser would, returning it unchanged."""
    if raw.startswith(":"):
        raise ValueError(f'parse "{raw}": missing protocol scheme')
    if not _SCHEME.match(raw) and not raw.startswith("/"):
        first_segment = raw.split("/", 1)[0]
        if ":" in first_segment:
            raise ValueError(
                f'parse "{raw}": first path segment in URL cannot contain colon'
            )
    return raw


def _parse_release_id(release_id: str) -> int:
    try:
        return int(release_id, 10)
    except ValueError:
        raise ValueError(f'parsing "{release_id}": invalid syntax') from None


def _raise_for_status(response: requests.Response) -> requests.Response:
    if response.status_code >= 400:
        raise requests.HTTPError(
            f"{response.request.method} {response.url}: "
            f"{response.status_code} {response.text}".rstrip(),
            response=response,
        )
    return response


def _status(err: requests.HTTPError) -> int | None:
    return err.response.status_code if err.response is not None else None


class GitHubClient:
    """Creates releases, files and uploads on GitHub."""

    def __init__(
        self,
        token: str = "",
        api_url: str = "",
        upload_url: str = "",
        skip_tls_verify: bool = False,
    ) -> None:
        api = DEFAULT_GITHUB_API_URL
        upload = DEFAULT_GITHUB_UPLOAD_URL
        if api_url:
            api = _parse_url(api_url)
            upload = _parse_url(upload_url)
        self._api = api.rstrip("/")
        self._upload = upload.rstrip("/")
        self._session = requests.Session()
        self._session.verify = not skip_tls_verify
        self._session.headers["Accept"] = "application/vnd.github.v3+json"
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        return _raise_for_status(self._session.request(method, url, **kwargs))

    def _repo_url(self, owner: str, name: str) -> str:
        return f"{self._api}/repos/{quote(owner, safe='')}/{quote(name, safe='')}"

    def _milestone_by_title(self, repo: Repo, title: str) -> dict[str, Any] | None:
        url: str | None = f"{self._repo_url(repo.owner, repo.name)}/milestones"
        params: dict[str, Any] | None = {"per_page": _PER_PAGE}
        while url:
            response = self._request("GET", url, params=params)
            for milestone in response.json() or []:
                if milestone and milestone.get("title") == title:
                    return milestone
            url = response.links.get("next", {}).get("url")
            params = None
        return None

    def close_milestone(self, repo: Repo, title: str) -> None:
        """Close the milestone named ``title``."""
        milestone = self._milestone_by_title(repo, title)
        if milestone is None:
            raise MilestoneNotFoundError(title)
        self._request(
            "PATCH",
            f"{self._repo_url(repo.owner, repo.name)}/milestones/{milestone['number']}",
            json={"title": milestone.get("title", title), "state": "closed"},
        )

    def create_file(
        self,
        commit_author: CommitAuthor,
        repo: Repo,
        content: bytes,
        path: str,
        message: str,
    ) -> None:
        """Create the file at ``path``, or update it when it already exists."""
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "committer": {"name": commit_author.name, "email": commit_author.email},
        }
        url = f"{self._repo_url(repo.owner, repo.name)}/contents/{quote(path, safe='/')}"
        try:
            current = self._request("GET", url).json()
        except requests.HTTPError as err:
            if _status(err) != 404:
                raise
            self._request("PUT", url, json=payload)
            return
        payload["sha"] = (current or {}).get("sha")
        self._request("PUT", url, json=payload)

    def create_release(self, info: ReleaseInfo, body: str) -> str:
        """Create the release, or update it keeping its existing notes; return its id."""
        data: dict[str, Any] = {
            "name": info.title,
            "tag_name": info.tag,
            "body": body,
            "draft": info.draft,
            "prerelease": info.prerelease,
        }
        if info.discussion_category:
            data["discussion_category_name"] = info.discussion_category
        base = self._repo_url(info.owner, info.name)
        try:
            existing = self._request(
                "GET", f"{base}/releases/tags/{quote(info.tag, safe='')}"
            ).json()
        except requests.RequestException:
            release = self._request("POST", f"{base}/releases", json=data).json()
        else:
            if existing.get("body"):
                data["body"] = existing["body"]
            release = self._request(
                "PATCH", f"{base}/releases/{existing.get('id', 0)}", json=data
            ).json()
        logger.info("release updated url=%s", release.get("html_url", ""))
        return str(release.get("id", 0))

    def release_url_template(self, download_url: str, repo: Repo) -> str:
        """Return the download URL template for release assets."""
        return (
            f"{download_url}/{repo.owner}/{repo.name}"
            "/releases/download/{{ .Tag }}/{{ .ArtifactName }}"
        )

    def upload(self, info: ReleaseInfo, release_id: str, artifact: Artifact, path: str) -> None:
        """Upload the file at ``path`` as an asset of release ``release_id``."""
        numeric_id = _parse_release_id(release_id)
        url = (
            f"{self._upload}/repos/{quote(info.owner, safe='')}/"
            f"{quote(info.name, safe='')}/releases/{numeric_id}/assets"
        )
        content_type = mimetypes.guess_type(artifact.name)[0] or "application/octet-stream"
        with open(path, "rb") as handle:
            try:
                self._request(
                    "POST",
                    url,
                    params={"name": artifact.name},
                    data=handle,
                    headers={"Content-Type": content_type},
                )
            except requests.HTTPError as err:
                if _status(err) == 422:
                    raise
                raise RetriableError(err) from err
            except requests.RequestException as err:
                raise RetriableError(err) from err