"""Release client for Gitea instances."""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote, urlsplit, urlunsplit

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

_API_PREFIX = "/api/v1"


class _APIError(requests.HTTPError):
    """A non-successful answer from the Gitea API."""

    def __init__(self, response: requests.Response) -> None:
        self.status_code = response.status_code
        if self.status_code == 403:
            message = "403 Forbidden"
        elif self.status_code == 404:
            message = "404 Not Found"
        else:
            message = (
                f"Unknown API Error: {self.status_code}\n"
                f"Request: '{response.url}' with '{response.request.method}' method "
                f"and '{response.text}' body"
            )
        super().__init__(message, response=response)


def get_instance_url(api_url: str) -> str:
    """Return the instance root of a Gitea API URL."""
    if api_url.startswith(":"):
        raise ValueError(f'parse "{api_url}": missing protocol scheme')
    parts = urlsplit(api_url)
    root = urlunsplit((parts.scheme, parts.netloc, "", parts.query, parts.fragment))
    if not root:
        raise ValueError(f"invalid URL: {api_url}")
    return root


class GiteaClient:
    """Creates releases, files and uploads on a Gitea instance."""

    def __init__(self, api_url: str, token: str = "", skip_tls_verify: bool = False) -> None:
        self.instance_url = get_instance_url(api_url)
        self._base = self.instance_url.rstrip("/") + _API_PREFIX
        self._session = requests.Session()
        self._session.verify = not skip_tls_verify
        if token:
            self._session.headers["Authorization"] = f"token {token}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        response = self._session.request(method, self._base + path, **kwargs)
        if response.status_code >= 400:
            raise _APIError(response)
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        return response.json() if response.content else None

    @staticmethod
    def _repo_path(owner: str, name: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(name, safe='')}"

    def close_milestone(self, repo: Repo, title: str) -> None:
        """Close the milestone named ``title``."""
        base = self._repo_path(repo.owner, repo.name)
        try:
            response = self._request(
                "GET", f"{base}/milestones", params={"state": "all", "name": title}
            )
        except _APIError as err:
            if err.status_code == 404:
                raise MilestoneNotFoundError(title) from err
            raise
        milestone = next(
            (m for m in self._json(response) or [] if m and m.get("title") == title),
            None,
        )
        if milestone is None:
            raise MilestoneNotFoundError(title)
        try:
            self._request(
                "PATCH",
                f"{base}/milestones/{milestone['id']}",
                json={"title": title, "state": "closed"},
            )
        except _APIError as err:
            if err.status_code == 404:
                raise MilestoneNotFoundError(title) from err
            raise

    def create_file(
        self,
        commit_author: CommitAuthor,
        repo: Repo,
        content: bytes,
        path: str,
        message: str,
    ) -> None:
        """Create the file at ``path`` on the default branch, or update it."""
        identity = {"name": commit_author.name, "email": commit_author.email}
        payload: dict[str, Any] = {
            "message": message,
            "author": identity,
            "committer": identity,
            "content": base64.b64encode(content).decode("ascii"),
        }
        url = f"{self._repo_path(repo.owner, repo.name)}/contents/{quote(path, safe='/')}"
        try:
            current = self._json(self._request("GET", url))
        except _APIError as err:
            if err.status_code != 404:
                raise
            self._request("POST", url, json=payload)
            return
        payload["sha"] = (current or {}).get("sha", "")
        self._request("PUT", url, json=payload)

    def _get_existing_release(self, owner: str, name: str, tag: str) -> dict[str, Any] | None:
        response = self._request("GET", f"{self._repo_path(owner, name)}/releases")
        for release in self._json(response) or []:
            if release.get("tag_name") == tag:
                return release
        return None

    @staticmethod
    def _release_payload(info: ReleaseInfo, title: str, body: str) -> dict[str, Any]:
        return {
            "tag_name": info.tag,
            "target_commitish": info.commit,
            "name": title,
            "body": body,
            "draft": info.draft,
            "prerelease": info.prerelease,
        }

    def _create_release(self, info: ReleaseInfo, title: str, body: str) -> dict[str, Any]:
        try:
            response = self._request(
                "POST",
                f"{self._repo_path(info.owner, info.name)}/releases",
                json=self._release_payload(info, title, body),
            )
        except requests.RequestException as err:
            logger.debug("error creating Gitea release: %s", err)
            raise
        release = self._json(response)
        logger.info("Gitea release created id=%s", release.get("id"))
        return release

    def _update_release(
        self, info: ReleaseInfo, title: str, body: str, release_id: int
    ) -> dict[str, Any]:
        try:
            response = self._request(
                "PATCH",
                f"{self._repo_path(info.owner, info.name)}/releases/{release_id}",
                json=self._release_payload(info, title, body),
            )
        except requests.RequestException as err:
            logger.debug("error updating Gitea release: %s", err)
            raise
        release = self._json(response)
        logger.info("Gitea release updated id=%s", release.get("id"))
        return release

    def create_release(self, info: ReleaseInfo, body: str) -> str:
        """Create the release, or update it keeping its existing notes; return its id."""
        existing = self._get_existing_release(info.owner, info.name, info.tag)
        if existing is not None:
            if existing.get("body"):
                body = existing["body"]
            release = self._update_release(info, info.title, body, existing.get("id", 0))
        else:
            release = self._create_release(info, info.title, body)
        return str(release.get("id", 0))

    def release_url_template(self, download_url: str, repo: Repo) -> str:
        """Return the download URL template for release assets."""
        return (
            f"{download_url}/{repo.owner}/{repo.name}"
            "/releases/download/{{ .Tag }}/{{ .ArtifactName }}"
        )

    def upload(self, info: ReleaseInfo, release_id: str, artifact: Artifact, path: str) -> None:
        """Attach the file at ``path`` to the release with id ``release_id``."""
        try:
            numeric_id = int(release_id, 10)
        except ValueError:
            raise ValueError(f'parsing "{release_id}": invalid syntax') from None
        url = f"{self._repo_path(info.owner, info.name)}/releases/{numeric_id}/assets"
        try:
            with open(path, "rb") as handle:
                self._request(
                    "POST",
                    url,
                    params={"name": artifact.name},
                    files={"attachment": (artifact.name, handle)},
                )
        except (requests.RequestException, OSError) as err:
            raise RetriableError(err) from err