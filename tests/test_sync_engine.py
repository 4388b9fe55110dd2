"""
Sync engine tests: optimistic publish, reconciliation, revalidation and rollback
"""

import asyncio
import json

import httpx
import pytest
import pytest_asyncio

from roastcall.core.errors import TransportFailure
from roastcall.sync.api_client import RosterApiClient
from roastcall.sync.engine import SyncEngine

CREATED_AT = "2026-10-19T18:00:00.000Z"


def group_json(group_id, name, members=()):
    return {"id": group_id, "name": name, "created_at": CREATED_AT, "members": list(members)}


def member_json(member_id, group_id, name="New Member", checked_in=False):
    return {
        "id": member_id, "group_id": group_id, "name": name,
        "checked_in": checked_in, "created_at": CREATED_AT,
    }


class FakeServer:
    """Scriptable stand-in for the roster API behind httpx.MockTransport"""

    def __init__(self, groups):
        self.groups = groups
        self.requests = []
        self.fail = {}  # (method, path) -> status code or exception
        self.delay = {}  # (method, path) -> seconds to wait before answering
        self.replies = {}  # (method, path) -> callable returning a canned response

    async def handler(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        self.requests.append(key)
        await asyncio.sleep(self.delay.get(key, 0))
        if key in self.replies:
            return self.replies[key]()
        failure = self.fail.get(key)
        if isinstance(failure, Exception):
            raise failure
        if failure:
            return httpx.Response(failure, json={"error": "Database unavailable"})
        if key == ("GET", "/api/groups"):
            return httpx.Response(200, json=self.groups)
        return self.respond(request)

    def respond(self, request):
        body = json.loads(request.content or b"{}")
        if request.url.path == "/api/members" and request.method == "POST":
            member = member_json(42, body["group_id"], body.get("name") or "New Member")
            for group in self.groups:
                if group["id"] == body["group_id"]:
                    group["members"].append(member)
            return httpx.Response(201, json=member)
        if request.url.path == "/api/groups" and request.method == "PUT":
            for group in self.groups:
                if group["id"] == body["id"]:
                    group["name"] = body["name"]
                    return httpx.Response(200, json={
                        "id": group["id"], "name": group["name"], "created_at": group["created_at"],
                    })
            return httpx.Response(500, json={"error": "Group not found"})
        return httpx.Response(404, json={"error": "Not Found"})

    def count(self, method, path):
        return self.requests.count((method, path))


@pytest.fixture
def server():
    return FakeServer([group_json(1, "Old", [member_json(7, 1, "Ann"), member_json(8, 1, "Ben")])])


@pytest_asyncio.fixture
async def mocked_engine(server):
    http = httpx.AsyncClient(transport=httpx.MockTransport(server.handler), base_url="http://roster")
    engine = SyncEngine(RosterApiClient(client=http), refresh_interval=0.01)
    await engine.refresh()
    yield engine
    await engine.stop()
    await http.aclose()


class TestRollback:

    @pytest.mark.asyncio
    async def test_failed_rename_restores_previous_name(self, server, mocked_engine):
        seen = []
        mocked_engine.subscribe(lambda snap: seen.append(snap[0].name))
        server.fail[("PUT", "/api/groups")] = 500

        with pytest.raises(TransportFailure, match="Database unavailable"):
            await mocked_engine.rename_group(1, "New")

        assert seen == ["New", "Old"]
        assert mocked_engine.groups[0].name == "Old"
        assert isinstance(mocked_engine.error, TransportFailure)
        assert mocked_engine.error.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error_restores_members(self, server, mocked_engine):
        before = mocked_engine.groups
        server.fail[("DELETE", "/api/groups")] = httpx.ConnectError("connection refused")

        with pytest.raises(TransportFailure):
            await mocked_engine.remove_group(1)

        assert mocked_engine.groups is before
        assert [m.id for m in mocked_engine.groups[0].members] == [7, 8]

    @pytest.mark.asyncio
    async def test_failed_mutation_is_not_retried(self, server, mocked_engine):
        server.fail[("POST", "/api/members")] = 503
        with pytest.raises(TransportFailure):
            await mocked_engine.add_member(1, "Cal")
        assert server.count("POST", "/api/members") == 1
        assert [m.id for m in mocked_engine.groups[0].members] == [7, 8]

    @pytest.mark.asyncio
    async def test_timed_out_rename_restores_previous_name(self, server, mocked_engine):
        seen = []
        mocked_engine.subscribe(lambda snap: seen.append(snap[0].name))
        server.delay[("PUT", "/api/groups")] = 5

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(mocked_engine.rename_group(1, "New"), timeout=0.05)

        assert seen == ["New", "Old"]
        assert mocked_engine.groups[0].name == "Old"
        assert mocked_engine.error is None


class TestReconciliation:

    @pytest.mark.asyncio
    async def test_add_member_replaces_sentinel_with_server_id(self, server, mocked_engine):
        seen = []
        mocked_engine.subscribe(lambda snap: seen.append([m.id for m in snap[0].members]))

        created = await mocked_engine.add_member(1)

        assert created.id == 42
        optimistic = seen[0]
        assert optimistic[:2] == [7, 8] and optimistic[2] < 0
        assert seen[1] == [7, 8, 42]
        ids = [m.id for m in mocked_engine.groups[0].members]
        assert ids.count(42) == 1
        assert all(member_id > 0 for member_id in ids)

    @pytest.mark.asyncio
    async def test_every_mutation_revalidates(self, server, mocked_engine):
        before = server.count("GET", "/api/groups")
        await mocked_engine.add_member(1, "Dee")
        assert server.count("GET", "/api/groups") == before + 1

    @pytest.mark.asyncio
    async def test_sentinels_are_unique_and_negative(self, mocked_engine):
        first, second = mocked_engine._sentinel(), mocked_engine._sentinel()
        assert first < 0 and second < 0 and first != second


class TestRevalidation:

    @pytest.mark.asyncio
    async def test_failed_reload_keeps_snapshot_and_records_error(self, server, mocked_engine):
        before = mocked_engine.groups
        server.fail[("GET", "/api/groups")] = 500

        result = await mocked_engine.refresh()

        assert result is before
        assert mocked_engine.groups is before
        assert isinstance(mocked_engine.error, TransportFailure)
        assert mocked_engine.is_loading is False

    @pytest.mark.asyncio
    async def test_successful_reload_clears_error(self, server, mocked_engine):
        server.fail[("GET", "/api/groups")] = 500
        await mocked_engine.refresh()
        del server.fail[("GET", "/api/groups")]
        server.groups.append(group_json(2, "Late"))

        await mocked_engine.refresh()

        assert mocked_engine.error is None
        assert [g.id for g in mocked_engine.groups] == [1, 2]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [
        lambda: httpx.Response(200, text="<html>bad gateway</html>"),
        lambda: httpx.Response(200, json=[{"id": "one", "name": None}]),
    ], ids=["not-json", "wrong-shape"])
    async def test_malformed_reload_after_commit(self, server, mocked_engine, reply):
        server.replies[("GET", "/api/groups")] = reply

        renamed = await mocked_engine.rename_group(1, "New")

        assert renamed.name == "New"
        assert mocked_engine.groups[0].name == "New"
        assert isinstance(mocked_engine.error, TransportFailure)
        assert "Malformed response" in str(mocked_engine.error)
        assert mocked_engine.is_loading is False

        before = mocked_engine.groups
        assert await mocked_engine.refresh() is before

    @pytest.mark.asyncio
    async def test_focus_triggers_reload(self, server, mocked_engine):
        before = server.count("GET", "/api/groups")
        await mocked_engine.notify_focus()
        assert server.count("GET", "/api/groups") == before + 1

    @pytest.mark.asyncio
    async def test_background_polling(self, server, mocked_engine):
        mocked_engine.start()
        await asyncio.sleep(0.1)
        await mocked_engine.stop()
        assert server.count("GET", "/api/groups") >= 3

    @pytest.mark.asyncio
    async def test_unsubscribe(self, mocked_engine):
        seen = []
        unsubscribe = mocked_engine.subscribe(seen.append)
        await mocked_engine.refresh()
        unsubscribe()
        await mocked_engine.refresh()
        assert len(seen) == 1



class TestOverlappingMutations:

    @pytest.mark.asyncio
    async def test_rollback_then_later_splice(self, server, mocked_engine):
        seen = []
        mocked_engine.subscribe(lambda snap: seen.append(snap[0].name))
        server.fail[("POST", "/api/members")] = 500
        server.delay[("POST", "/api/members")] = 0.05
        server.delay[("PUT", "/api/groups")] = 0.1

        add = asyncio.create_task(mocked_engine.add_member(1, "Cal"))
        await asyncio.sleep(0)
        rename = asyncio.create_task(mocked_engine.rename_group(1, "New"))
        results = await asyncio.gather(add, rename, return_exceptions=True)

        assert isinstance(results[0], TransportFailure)
        assert results[1].name == "New"
        # add's rollback republishes its own starting snapshot, hiding the
        # pending rename until the rename's splice lands.
        assert seen == ["Old", "New", "Old", "New", "New"]
        assert mocked_engine.groups[0].name == "New"
        assert [m.id for m in mocked_engine.groups[0].members] == [7, 8]
        assert mocked_engine.error is None

class TestAgainstApp:

    @pytest.mark.asyncio
    async def test_full_workflow(self, live_api):
        engine = SyncEngine(live_api)
        await engine.refresh()
        assert engine.groups == ()

        group = await engine.add_group("  Panel 1  ")
        assert group.name == "Panel 1"
        assert [g.id for g in engine.groups] == [group.id]

        member = await engine.add_member(group.id, "Alice")
        await engine.toggle_checkin(member.id, group.id)
        assert engine.groups[0].members[0].checked_in is True

        await engine.edit_member(member.id, group.id, name="Alicia")
        assert engine.groups[0].members[0].name == "Alicia"
        assert engine.groups[0].members[0].checked_in is True

        await engine.rename_group(group.id, "Finals")
        assert engine.groups[0].name == "Finals"
        assert engine.groups[0].members[0].id == member.id

        await engine.remove_member(member.id, group.id)
        assert engine.groups[0].members == ()

        await engine.remove_group(group.id)
        assert engine.groups == ()

    @pytest.mark.asyncio
    async def test_server_rejection_rolls_back(self, live_api):
        engine = SyncEngine(live_api)
        group = await engine.add_group("Solo")
        snapshot = engine.groups

        with pytest.raises(TransportFailure, match="Member not found"):
            await engine.edit_member(999, group.id, checked_in=True)

        assert engine.groups is snapshot
