"""Release client for GitLab."""

from __future__ import annotations

import logging
import os
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

DEFAULT_GITLAB_DOWNLOAD_URL = "https://gitlab.com"
DEFAULT_GITLAB_API_URL = "https://gitlab.com/api/v4"

_BRANCH = "master"


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


class GitLabClient:
    """Creates releases, files and uploads on a GitLab instance."""

    def __init__(
        self,
        token: str = "",
        api_url: str = "",
        download_url: str = DEFAULT_GITLAB_DOWNLOAD_URL,
        skip_tls_verify: bool = False,
    ) -> None:
        self._api = (api_url or DEFAULT_GITLAB_API_URL).rstrip("/")
        self.download_url = download_url
        self._session = requests.Session()
        self._session.verify = not skip_tls_verify
        if token:
            self._session.headers["PRIVATE-TOKEN"] = token

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        return _raise_for_status(self._session.request(method, url, **kwargs))

    @staticmethod
    def _project_id(owner: str, name: str) -> str:
        return f"{owner}/{name}"

    def _project_url(self, owner: str, name: str) -> str:
        return f"{self._api}/projects/{quote(self._project_id(owner, name), safe='')}"

    def _milestone_by_title(self, repo: Repo, title: str) -> dict[str, Any] | None:
        url = f"{self._project_url(repo.owner, repo.name)}/milestones"
        params: dict[str, Any] = {"title": title}
        while True:
            response = self._request("GET", url, params=params)
            for milestone in response.json() or []:
                if milestone and milestone.get("title") == title:
                    return milestone
            next_page = response.headers.get("X-Next-Page", "")
            if not next_page or next_page == "0":
                return None
            params["page"] = next_page

    def close_milestone(self, repo: Repo, title: str) -> None:
        """Close the milestone named ``title``."""
        milestone = self._milestone_by_title(repo, title)
        if milestone is None:
            raise MilestoneNotFoundError(title)
        self._request(
            "PUT",
            f"{self._project_url(repo.owner, repo.name)}/milestones/{milestone['id']}",
            json={
                "title": milestone.get("title", title),
                "description": milestone.get("description", ""),
                "due_date": milestone.get("due_date"),
                "start_date": milestone.get("start_date"),
                "state_event": "close",
            },
        )

    def create_file(
        self,
        commit_author: CommitAuthor,
        repo: Repo,
        content: bytes,
        path: str,
        message: str,
    ) -> None:
        """Create the file at ``path`` on the master branch, or update it."""
        project_id = self._project_id(repo.owner, repo.name)
        url = f"{self._project_url(repo.owner, repo.name)}/repository/files/{quote(path, safe='')}"
        logger.debug("project id owner=%s name=%s", repo.owner, repo.name)
        payload = {
            "branch": _BRANCH,
            "author_name": commit_author.name,
            "author_email": commit_author.email,
            "content": content.decode("utf-8"),
            "commit_message": message,
        }
        try:
            self._request("GET", url, params={"ref": _BRANCH})
        except requests.HTTPError as err:
            if _status(err) != 404:
                logger.error(
                    "error getting file file=%s project=%s status=%s",
                    path,
                    project_id,
                    _status(err),
                )
                raise
            logger.debug("creating file file=%s project=%s", path, project_id)
            self._request("POST", url, json=payload)
            return
        logger.debug("updating file file=%s project=%s", path, project_id)
        self._request("PUT", url, json=payload)

    def create_release(self, info: ReleaseInfo, body: str) -> str:
        """Create the release, or update it keeping its existing notes; return the tag."""
        base = self._project_url(info.owner, info.name)
        release_url = f"{base}/releases/{quote(info.tag, safe='')}"
        existing: dict[str, Any] | None = None
        forbidden = False
        try:
            existing = self._request("GET", release_url).json()
        except requests.HTTPError as err:
            if _status(err) != 403:
                raise
            logger.debug("get release: %s", err)
            forbidden = True
        if forbidden:
            release = self._request(
                "POST",
                f"{base}/releases",
                json={
                    "name": info.title,
                    "description": body,
                    "ref": info.commit,
                    "tag_name": info.tag,
                },
            ).json()
            logger.info("release created name=%s", (release or {}).get("name"))
        else:
            description = body
            if existing and existing.get("description_html"):
                description = existing["description_html"]
            release = self._request(
                "PUT",
                release_url,
                json={"name": info.title, "description": description},
            ).json()
            logger.info("release updated name=%s", (release or {}).get("name"))
        return info.tag

    def release_url_template(self, download_url: str, repo: Repo) -> str:
        """Return the download URL template for release assets."""
        return (
            f"{download_url}/{repo.owner}/{repo.name}"
            "/-/releases/{{ .Tag }}/downloads/{{ .ArtifactName }}"
        )

    def upload(self, info: ReleaseInfo, release_id: str, artifact: Artifact, path: str) -> None:
        """Upload the file at ``path`` and link it to the release ``release_id``."""
        project_id = self._project_id(info.owner, info.name)
        base = self._project_url(info.owner, info.name)
        logger.debug("uploading file %s", path)
        with open(path, "rb") as handle:
            project_file = self._request(
                "POST",
                f"{base}/uploads",
                files={"file": (os.path.basename(path), handle)},
            ).json()
        file_url = project_file.get("url", "")
        logger.debug("uploaded file %s url=%s", path, file_url)
        link_url = f"{self.download_url}/{project_id}{file_url}"
        try:
            link = self._request(
                "POST",
                f"{base}/releases/{quote(release_id, safe='')}/assets/links",
                json={
                    "name": artifact.name,
                    "url": link_url,
                    "filepath": "/" + artifact.name,
                },
            ).json()
        except requests.RequestException as err:
            raise RetriableError(err) from err
        logger.debug(
            "created release link id=%s url=%s",
            (link or {}).get("id"),
            (link or {}).get("direct_asset_url"),
        )
        if artifact.extra is None:
            artifact.extra = {}