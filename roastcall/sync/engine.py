"""
Client-side cache of the whole roster with optimistic mutations.

Each mutation publishes an optimistic snapshot, calls the API, splices the
server's entity into the cache, then reloads everything from the server.
If the API call fails, the snapshot from before the mutation is restored and
the error is raised to the caller. Nothing is retried.

Mutations are not queued: two overlapping calls each patch whatever snapshot
is current when they start, and the last splice wins.
"""

import asyncio
import itertools
import logging
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Set

from roastcall.config.settings import settings
from roastcall.core.names import clean_name, rename_value
from roastcall.core.errors import TransportFailure
from roastcall.modules.groups.schemas import GroupWithMembers
from roastcall.modules.members.schemas import MemberResponse, MemberUpdate
from roastcall.sync import snapshot as patches
from roastcall.sync.api_client import RosterApiClient
from roastcall.sync.snapshot import Snapshot

logger = logging.getLogger(__name__)

Listener = Callable[[Snapshot], None]


class SyncEngine:
    def __init__(self, api: RosterApiClient, refresh_interval: Optional[float] = None):
        self.api = api
        self.refresh_interval = (
            settings.sync_refresh_interval if refresh_interval is None else refresh_interval
        )
        self.is_loading = False
        self.error: Optional[Exception] = None
        self._snapshot: Snapshot = ()
        self._listeners: List[Listener] = []
        # Server ids are positive, so negative ids can only be placeholders.
        self._sentinels = itertools.count(-1, -1)
        self._poller: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def groups(self) -> Snapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with every published snapshot; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Revalidation
    # ------------------------------------------------------------------

    async def revalidate(self) -> Snapshot:
        """Replace the cache with the server's full dataset.

        A failed reload keeps the current snapshot and records the error on
        `self.error` for display; it does not raise.
        """
        self.is_loading = True
        try:
            fresh = await self.api.list_groups()
        except TransportFailure as e:
            logger.error(f"Revalidation failed: {e}")
            self.error = e
            return self._snapshot
        finally:
            self.is_loading = False
        self.error = None
        self._publish(fresh)
        return fresh

    async def refresh(self) -> Snapshot:
        return await self.revalidate()

    def notify_focus(self) -> asyncio.Task:
        """The consumer regained focus; reload in the background"""
        task = asyncio.create_task(self.revalidate())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.revalidate()
            except Exception as e:
                logger.error(f"Error in revalidation loop: {str(e)}")
            await asyncio.sleep(self.refresh_interval)

    def start(self) -> None:
        """Load immediately, then keep reloading every `refresh_interval` seconds"""
        if self._poller is None:
            self._poller = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        tasks = list(self._pending)
        if self._poller is not None:
            tasks.append(self._poller)
            self._poller = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

    async def __aenter__(self) -> "SyncEngine":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
        await self.api.aclose()

    # ------------------------------------------------------------------
    # Mutation protocol
    # ------------------------------------------------------------------

    async def _mutate(
        self,
        label: str,
        optimistic: Callable[[Snapshot], Snapshot],
        call: Callable[[], Awaitable[Any]],
        splice: Callable[[Snapshot, Any], Snapshot],
    ) -> Any:
        previous = self._snapshot
        self._publish(optimistic(previous))
        try:
            result = await call()
        except asyncio.CancelledError:
            # A wait_for timeout cancels here; the optimistic patch still has to go.
            logger.warning(f"{label} cancelled, restoring previous snapshot")
            self._publish(previous)
            raise
        except Exception as e:
            logger.warning(f"{label} failed, restoring previous snapshot: {e}")
            self.error = e
            self._publish(previous)
            raise
        self._publish(splice(self._snapshot, result))
        await self.revalidate()
        return result

    def _sentinel(self) -> int:
        return next(self._sentinels)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def add_group(self, name: Optional[str] = None) -> GroupWithMembers:
        temp_id = self._sentinel()
        placeholder = GroupWithMembers(
            id=temp_id,
            name=clean_name(name, settings.default_group_name),
            created_at=datetime.now(timezone.utc),
            members=(),
        )
        return await self._mutate(
            "add_group",
            lambda snap: patches.append_group(snap, placeholder),
            lambda: self.api.create_group(name),
            lambda snap, created: patches.replace_group(snap, temp_id, created),
        )

    async def rename_group(self, group_id: int, name: str):
        new_name = rename_value(name)
        return await self._mutate(
            "rename_group",
            lambda snap: patches.rename_group(snap, group_id, new_name) if new_name else snap,
            lambda: self.api.rename_group(group_id, name),
            lambda snap, updated: patches.merge_group(snap, group_id, updated),
        )

    async def remove_group(self, group_id: int) -> None:
        # Dropping the group drops its embedded members with it.
        await self._mutate(
            "remove_group",
            lambda snap: patches.drop_group(snap, group_id),
            lambda: self.api.delete_group(group_id),
            lambda snap, _: patches.drop_group(snap, group_id),
        )

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def add_member(self, group_id: int, name: Optional[str] = None) -> MemberResponse:
        temp_id = self._sentinel()
        placeholder = MemberResponse(
            id=temp_id,
            group_id=group_id,
            name=clean_name(name, settings.default_member_name),
            checked_in=False,
            created_at=datetime.now(timezone.utc),
        )
        return await self._mutate(
            "add_member",
            lambda snap: patches.append_member(snap, group_id, placeholder),
            lambda: self.api.create_member(group_id, name),
            lambda snap, created: patches.replace_member(snap, group_id, temp_id, created),
        )

    async def edit_member(
        self,
        member_id: int,
        group_id: int,
        name: Optional[str] = None,
        checked_in: Optional[bool] = None,
    ) -> MemberResponse:
        updates = MemberUpdate(name=name, checked_in=checked_in)
        payload = updates.model_dump(exclude_none=True)
        return await self._mutate(
            "edit_member",
            lambda snap: patches.patch_member(snap, group_id, member_id, **updates.to_columns()),
            lambda: self.api.update_member(member_id, payload),
            lambda snap, updated: patches.replace_member(snap, group_id, member_id, updated),
        )

    async def toggle_checkin(self, member_id: int, group_id: int) -> MemberResponse:
        """Flip a member's check-in flag based on the cached value"""
        member = self._find_member(member_id, group_id)
        current = member.checked_in if member is not None else False
        return await self.edit_member(member_id, group_id, checked_in=not current)

    async def remove_member(self, member_id: int, group_id: int) -> None:
        await self._mutate(
            "remove_member",
            lambda snap: patches.drop_member(snap, group_id, member_id),
            lambda: self.api.delete_member(member_id),
            lambda snap, _: patches.drop_member(snap, group_id, member_id),
        )

    def _find_member(self, member_id: int, group_id: int) -> Optional[MemberResponse]:
        for group in self._snapshot:
            if group.id == group_id:
                for member in group.members:
                    if member.id == member_id:
                        return member
        return None
