"""Hosting platform API adapter (GitHub, Gitee, Gitcode).

Implements the core PlatformApiPort over each platform's REST API with a
shared httpx.AsyncClient. Pagination is never needed: only the newest commit
or release is requested.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from core.models import COMMITS, RELEASES, AdapterSignal

LOGGER = logging.getLogger(__name__)

API_BASES = {
    "GitHub": "https://api.github.com",
    "Gitee": "https://gitee.com/api/v5",
    "Gitcode": "https://api.gitcode.com/api/v5",
}

RATE_LIMIT_STATUS = 429


class UnsupportedPlatformError(ValueError):
    pass


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == RATE_LIMIT_STATUS:
        return True
    # GitHub also answers 403 for blocked repositories and insufficient tokens.
    if response.status_code == 403:
        return response.headers.get("X-RateLimit-Remaining") == "0" or "Retry-After" in response.headers
    return False


class GitApi:
    """Thin REST client that satisfies the PlatformApiPort contract."""

    def __init__(self, timeout: float = 15.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _base(self, platform: str) -> str:
        try:
            return API_BASES[platform]
        except KeyError:
            raise UnsupportedPlatformError(f"Unsupported platform: {platform}") from None

    @staticmethod
    def _auth(platform: str, credential: Optional[str]) -> tuple[Dict[str, str], Dict[str, str]]:
        headers: Dict[str, str] = {}
        params: Dict[str, str] = {}
        if platform == "GitHub":
            headers["Accept"] = "application/vnd.github+json"
            if credential:
                headers["Authorization"] = f"Bearer {credential}"
        elif credential:
            # Gitee and Gitcode take the token as a query parameter.
            params["access_token"] = credential
        return headers, params

    async def _get(
        self,
        platform: str,
        url: str,
        credential: Optional[str],
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        headers, auth_params = self._auth(platform, credential)
        return await self._client.get(url, headers=headers, params={**(params or {}), **auth_params})

    async def get_repository_data(
        self,
        path: str,
        platform: str,
        data_type: str,
        credential: Optional[str],
        branch: Optional[str] = None,
    ) -> Any:
        """Return the newest commit(s) or release(s) of a repository.

        A commit request with a branch returns a single commit object; all
        other requests return a list with at most one element.
        """

        base = f"{self._base(platform)}/repos/{path}"
        if data_type == COMMITS:
            if branch:
                url, params = f"{base}/commits/{branch}", None
            else:
                url, params = f"{base}/commits", {"per_page": 1}
        elif data_type == RELEASES:
            url, params = f"{base}/releases", {"per_page": 1}
            if platform != "GitHub":
                params["direction"] = "desc"
        else:
            raise ValueError(f"Unsupported data type: {data_type}")

        response = await self._get(platform, url, credential, params)
        if response.status_code == 404:
            return AdapterSignal.NOT_FOUND
        if _is_rate_limited(response):
            LOGGER.debug("%s rate limited the request for %s (%s)", platform, path, response.status_code)
            return AdapterSignal.SKIP
        response.raise_for_status()
        return response.json()

    async def get_default_branch(self, path: str, platform: str, credential: Optional[str]) -> Optional[str]:
        response = await self._get(platform, f"{self._base(platform)}/repos/{path}", credential)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json().get("default_branch") or None
