import base64
import json

import pytest
import requests
import responses

from releasekit.artifact import Artifact
from releasekit.client import (
    CommitAuthor,
    MilestoneNotFoundError,
    ReleaseInfo,
    Repo,
    RetriableError,
)
from releasekit.github import DEFAULT_GITHUB_DOWNLOAD_URL, GitHubClient

API = "https://api.github.com"
UPLOAD = "https://uploads.github.com"
REPO_URL = f"{API}/repos/owner/name"


def _info(**kwargs):
    values = dict(owner="owner", name="name", tag="v1.0.0", title="title")
    values.update(kwargs)
    return ReleaseInfo(**values)


def test_good_urls():
    client = GitHubClient(
        token="token",
        api_url="https://github.mycompany.com/api",
        upload_url="https://github.mycompany.com/upload",
    )
    assert client.release_url_template("https://x", Repo("o", "n")).startswith("https://x/o/n")


def test_bad_api_url():
    with pytest.raises(ValueError) as exc:
        GitHubClient(
            api_url="://github.mycompany.com/api",
            upload_url="https://github.mycompany.com/upload",
        )
    assert str(exc.value) == 'parse "://github.mycompany.com/api": missing protocol scheme'


def test_bad_upload_url():
    with pytest.raises(ValueError) as exc:
        GitHubClient(
            api_url="https://github.mycompany.com/api",
            upload_url="not a url:4994",
        )
    assert (
        str(exc.value)
        == 'parse "not a url:4994": first path segment in URL cannot contain colon'
    )


def test_upload_release_id_not_int():
    client = GitHubClient()
    with pytest.raises(ValueError) as exc:
        client.upload(_info(), "blah", Artifact(), "unused")
    assert str(exc.value) == 'parsing "blah": invalid syntax'


def test_release_url_template():
    client = GitHubClient()
    assert (
        client.release_url_template(DEFAULT_GITHUB_DOWNLOAD_URL, Repo("owner", "name"))
        == "https://github.com/owner/name/releases/download/{{ .Tag }}/{{ .ArtifactName }}"
    )


def test_close_milestone_paginates():
    client = GitHubClient(token="token")
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{REPO_URL}/milestones",
            json=[{"title": "other", "number": 1}],
            headers={"Link": f'<{REPO_URL}/milestones?per_page=100&page=2>; rel="next"'},
        )
        rsps.add(
            responses.GET,
            f"{REPO_URL}/milestones",
            json=[{"title": "v1.0.0", "number": 7}],
        )
        rsps.add(responses.PATCH, f"{REPO_URL}/milestones/7", json={})
        result = client.close_milestone(Repo("owner", "name"), "v1.0.0")
        assert result is None
        assert json.loads(rsps.calls[2].request.body)["state"] == "closed"
        assert "page=2" in rsps.calls[1].request.url


def test_close_milestone_not_found():
    client = GitHubClient()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{REPO_URL}/milestones", json=[])
        with pytest.raises(MilestoneNotFoundError) as exc:
            client.close_milestone(Repo("owner", "name"), "v9")
    assert str(exc.value) == "no milestone found: v9"


def test_create_file_new():
    client = GitHubClient()
    url = f"{REPO_URL}/contents/Formula/foo.rb"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, status=404, json={"message": "Not Found"})
        rsps.add(responses.PUT, url, status=201, json={})
        result = client.create_file(
            CommitAuthor("bot", "bot@example.com"),
            Repo("owner", "name"),
            b"hello world",
            "Formula/foo.rb",
            "add foo",
        )
        body = json.loads(rsps.calls[1].request.body)
    assert result is None
    assert base64.b64decode(body["content"]) == b"hello world"
    assert body["committer"] == {"name": "bot", "email": "bot@example.com"}
    assert "sha" not in body


def test_create_file_update_uses_sha():
    client = GitHubClient()
    url = f"{REPO_URL}/contents/foo.rb"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, json={"sha": "abc123"})
        rsps.add(responses.PUT, url, json={})
        result = client.create_file(CommitAuthor(), Repo("owner", "name"), b"x", "foo.rb", "m")
        assert result is None
        assert json.loads(rsps.calls[1].request.body)["sha"] == "abc123"


def test_create_file_other_error():
    client = GitHubClient()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{REPO_URL}/contents/foo.rb", status=500)
        with pytest.raises(requests.HTTPError):
            client.create_file(CommitAuthor(), Repo("owner", "name"), b"x", "foo.rb", "m")


def test_create_release_new():
    client = GitHubClient()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{REPO_URL}/releases/tags/v1.0.0", status=404)
        rsps.add(responses.POST, f"{REPO_URL}/releases", json={"id": 42})
        assert client.create_release(_info(prerelease=True), "notes") == "42"
        body = json.loads(rsps.calls[1].request.body)
    assert body["body"] == "notes"
    assert body["prerelease"] is True
    assert body["name"] == "title"


def test_create_release_keeps_existing_body():
    client = GitHubClient()
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{REPO_URL}/releases/tags/v1.0.0",
            json={"id": 5, "body": "old notes"},
        )
        rsps.add(responses.PATCH, f"{REPO_URL}/releases/5", json={"id": 5})
        assert client.create_release(_info(discussion_category="General"), "new") == "5"
        body = json.loads(rsps.calls[1].request.body)
    assert body["body"] == "old notes"
    assert body["discussion_category_name"] == "General"


def test_upload_success(tmp_path):
    asset = tmp_path / "a.tar.gz"
    asset.write_bytes(b"data")
    client = GitHubClient()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{UPLOAD}/repos/owner/name/releases/3/assets", json={})
        result = client.upload(_info(), "3", Artifact(name="a.tar.gz"), str(asset))
        assert result is None
        assert "name=a.tar.gz" in rsps.calls[0].request.url


def test_upload_422_is_not_retriable(tmp_path):
    asset = tmp_path / "a.bin"
    asset.write_bytes(b"data")
    client = GitHubClient()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{UPLOAD}/repos/owner/name/releases/3/assets", status=422)
        with pytest.raises(requests.HTTPError) as exc:
            client.upload(_info(), "3", Artifact(name="a.bin"), str(asset))
    assert not isinstance(exc.value, RetriableError)
    assert exc.value.response.status_code == 422


def test_upload_server_error_is_retriable(tmp_path):
    asset = tmp_path / "a.bin"
    asset.write_bytes(b"data")
    client = GitHubClient()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{UPLOAD}/repos/owner/name/releases/3/assets", status=502)
        with pytest.raises(RetriableError):
            client.upload(_info(), "3", Artifact(name="a.bin"), str(asset))