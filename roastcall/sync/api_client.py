"""
Async HTTP client for the roster API, used by the sync engine
"""

import logging
import httpx
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from roastcall.config.settings import settings
from roastcall.core.errors import TransportFailure
from roastcall.modules.groups.schemas import GroupResponse, GroupWithMembers
from roastcall.modules.members.schemas import MemberResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class RosterApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        prefix: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.prefix = settings.api_prefix if prefix is None else prefix
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.sync_base_url,
            timeout=settings.sync_timeout if timeout is None else timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, f"{self.prefix}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise TransportFailure(f"{method} {path} failed: {e}") from e
        if response.is_error:
            raise TransportFailure(_error_message(response), status_code=response.status_code)
        return response

    def _parse(self, response: httpx.Response, parse: Callable[[Any], T]) -> T:
        """Decode and validate a 2xx body; malformed payloads count as transport failures"""
        try:
            return parse(response.json())
        except ValueError as e:
            raise TransportFailure(f"Malformed response from {response.request.url.path}: {e}") from e

    async def list_groups(self) -> Tuple[GroupWithMembers, ...]:
        response = await self._request("GET", "/groups")
        return self._parse(
            response, lambda body: tuple(GroupWithMembers.model_validate(item) for item in body)
        )

    async def create_group(self, name: Optional[str] = None) -> GroupWithMembers:
        response = await self._request("POST", "/groups", json={"name": name})
        return self._parse(response, GroupWithMembers.model_validate)

    async def rename_group(self, group_id: int, name: str) -> GroupResponse:
        response = await self._request("PUT", "/groups", json={"id": group_id, "name": name})
        return self._parse(response, GroupResponse.model_validate)

    async def delete_group(self, group_id: int) -> None:
        await self._request("DELETE", "/groups", params={"id": group_id})

    async def create_member(self, group_id: int, name: Optional[str] = None) -> MemberResponse:
        response = await self._request("POST", "/members", json={"group_id": group_id, "name": name})
        return self._parse(response, MemberResponse.model_validate)

    async def update_member(self, member_id: int, updates: Dict[str, Any]) -> MemberResponse:
        response = await self._request("PUT", "/members", json={"id": member_id, **updates})
        return self._parse(response, MemberResponse.model_validate)

    async def delete_member(self, member_id: int) -> None:
        await self._request("DELETE", "/members", params={"id": member_id})
