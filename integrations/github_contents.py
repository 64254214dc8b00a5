"""
GitHub Contents API client and the remote prediction store built on it.

The predictions live in one JSON file inside a GitHub repository. A read
returns the decoded file plus its blob SHA; a write sends the SHA back so
GitHub can reject the update if the file moved underneath us. There is no
retry: a rejected write surfaces as ``StoreConflict`` and the caller decides.
"""

from __future__ import annotations

import base64
import json
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import requests

from core.exceptions import StoreConflict, UpstreamError
from services.storage import PredictionSet, PredictionStore, serialize_predictions

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
COMMIT_MESSAGE = "Update predictions"

# GitHub answers a stale or missing SHA with one of these
_CONFLICT_STATUSES = {409, 422}


class GitHubContentsClient:
    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        path: str,
        branch: str = "master",
        api_url: str = GITHUB_API_URL,
        timeout: float = 10.0,
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.path = path
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "GitHubContentsClient":
        return cls(
            token=settings.github_token,
            owner=settings.github_repo_owner,
            repo=settings.github_repo_name,
            path=settings.github_file_path,
            branch=settings.github_branch,
            api_url=settings.github_api_url,
            timeout=settings.github_timeout,
        )

    @property
    def url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{self.path}"

    @contextmanager
    def _session(self) -> Iterator[requests.Session]:
        session = requests.Session()
        session.headers.update({
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github.v3+json",
        })
        try:
            yield session
        finally:
            session.close()

    def read(self) -> Tuple[PredictionSet, Optional[str]]:
        """Fetch and decode the file. A missing file reads as an empty set."""
        try:
            with self._session() as session:
                response = session.get(
                    self.url, params={"ref": self.branch}, timeout=self.timeout
                )
        except requests.RequestException as exc:
            raise UpstreamError(f"GitHub read failed: {exc}") from exc

        if response.status_code == 404:
            logger.info("Predictions file not found upstream, starting empty",
                        extra={"repo": f"{self.owner}/{self.repo}", "file": self.path})
            return {}, None
        if not response.ok:
            raise UpstreamError(f"GitHub read failed: {response.status_code}")

        try:
            payload = response.json()
            content = base64.b64decode(payload["content"]).decode("utf-8")
            data = json.loads(content)
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamError(f"GitHub returned malformed content: {exc}") from exc

        if not isinstance(data, dict):
            raise UpstreamError(
                f"GitHub file holds {type(data).__name__}, expected an object"
            )

        return data, payload.get("sha")

    def write(self, data: PredictionSet, sha: Optional[str] = None) -> None:
        """Commit the full prediction set, guarded by ``sha`` when we have one."""
        content = base64.b64encode(serialize_predictions(data).encode("utf-8")).decode("ascii")
        body = {
            "message": COMMIT_MESSAGE,
            "content": content,
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha

        try:
            with self._session() as session:
                response = session.put(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamError(f"GitHub write failed: {exc}") from exc

        if response.status_code in _CONFLICT_STATUSES:
            raise StoreConflict(f"GitHub write failed: {response.status_code} {response.text}")
        if not response.ok:
            raise UpstreamError(f"GitHub write failed: {response.status_code} {response.text}")

        logger.info("Predictions committed", extra={"entries": len(data), "had_sha": bool(sha)})


class GitHubContentsStore(PredictionStore):
    """Prediction store whose version token is the file's blob SHA."""

    name = "github_contents"

    def __init__(self, client: GitHubContentsClient):
        self.client = client

    def load(self) -> Tuple[PredictionSet, Optional[str]]:
        return self.client.read()

    def save(self, data: PredictionSet, version: Optional[str] = None) -> None:
        self.client.write(data, version)
