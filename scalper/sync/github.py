"""GitHub contents API backed versioned store."""

import base64
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from scalper.sync.base import PutResult, VersionedObject, VersionedStore

logger = logging.getLogger(__name__)


class GitHubContentsStore(VersionedStore):
    """A single file in a GitHub repository branch.

    The blob sha returned by the contents API is the version token; a
    PUT with a stale sha is answered with HTTP 409, which maps to a
    conflict result.

    Usage:
        store = GitHubContentsStore("owner/repo", "data/ledger.json", token=token)
        obj = store.get()
    """

    API_URL = "https://api.github.com"

    def __init__(
        self,
        repo: str,
        path: str,
        token: str,
        branch: str = "data",
        api_url: str = API_URL,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the store.

        Args:
            repo: Repository in owner/name form.
            path: File path inside the repository.
            token: GitHub token with contents write access.
            branch: Branch holding the file.
            api_url: API base URL.
            client: Optional preconfigured HTTP client.
        """
        self.repo = repo
        self.path = path
        self.branch = branch
        self._client = client or httpx.Client(
            base_url=api_url,
            timeout=30.0,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "scalper-ledger-sync",
            },
        )

    @property
    def name(self) -> str:
        return f"github:{self.repo}@{self.branch}/{self.path}"

    @property
    def _url(self) -> str:
        return f"/repos/{self.repo}/contents/{self.path}"

    def get(self) -> Optional[VersionedObject]:
        """Fetch the file and its sha.

        Raises:
            httpx.HTTPError: On transport failure or unexpected status.
            ValueError: If the path is not a single file.
        """
        response = self._client.get(self._url, params={"ref": self.branch})
        if response.status_code == 404:
            return None
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict) or "sha" not in data:
            raise ValueError(f"{self.name} is not a file")
        content = base64.b64decode(data.get("content", "").replace("\n", ""))
        return VersionedObject(content=content, version=data["sha"])

    def put(self, content: bytes, expected_version: Optional[str]) -> PutResult:
        """Commit new file content against an expected sha.

        Raises:
            httpx.HTTPError: On transport failure.
        """
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
        body = {
            "message": f"ledger sync {stamp}",
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if expected_version:
            body["sha"] = expected_version

        response = self._client.put(self._url, json=body)

        if response.status_code == 409:
            return PutResult(status="conflict", message=response.text)
        # A create without sha loses to a concurrent create with 422
        if response.status_code == 422 and not expected_version:
            return PutResult(status="conflict", message=response.text)
        if response.is_error:
            return PutResult(
                status="error",
                message=f"GitHub push failed ({response.status_code}): {response.text}",
            )

        sha = response.json()["content"]["sha"]
        return PutResult(status="ok", version=sha)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()
