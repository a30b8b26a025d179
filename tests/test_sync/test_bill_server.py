"""End-to-end tests: StoreClient over a live WebSocket BillServer."""

from __future__ import annotations

import asyncio
import json

import pytest
import websockets

from splitbill.sync.remote import RemoteCallError, StoreClient


def _run(coro):
    return asyncio.run(coro)


class TestRoundTrip:
    def test_add_and_read_back(self, live_server, store):
        async def scenario():
            async with StoreClient.connect_url(live_server.url, timeout=5) as client:
                alice = await client.add_person("Alice")
                bob = await client.add_person("Bob")
                await client.set_bill_amount(80)
                await client.batch_update_percentages([(alice, 25), (bob, 75)])
                return await client.get_bill_details()

        snapshot = _run(scenario())
        assert [p["name"] for p in snapshot["people"]] == ["Alice", "Bob"]
        assert snapshot["total_percentage"] == 100
        assert snapshot["bill_amount"] == 80.0
        # the server's store is the one we handed it
        assert store.get_bill_details() == snapshot

    def test_unset_amount_crosses_as_none(self, live_server):
        async def scenario():
            async with StoreClient.connect_url(live_server.url) as client:
                return await client.get_bill_details()

        assert _run(scenario())["bill_amount"] is None

    def test_unknown_id_answers_false(self, live_server):
        async def scenario():
            async with StoreClient.connect_url(live_server.url) as client:
                return (
                    await client.remove_person(9),
                    await client.update_person(9, "Ghost", 10),
                    await client.update_percentage(9, 10),
                )

        assert _run(scenario()) == (False, False, False)

    def test_full_person_update_with_avatar(self, live_server, store):
        async def scenario():
            async with StoreClient.connect_url(live_server.url) as client:
                person_id = await client.add_person("")
                return await client.update_person(person_id, "Dana", 12.5, "dana.png")

        assert _run(scenario()) is True
        assert store.get_bill_details()["people"][0] == {
            "id": 0,
            "name": "Dana",
            "percentage": 12.5,
            "avatar": "dana.png",
        }

    def test_invalid_params_surface_as_remote_error(self, live_server):
        async def scenario():
            async with StoreClient.connect_url(live_server.url) as client:
                await client.remove_person("zero")  # type: ignore[arg-type]

        with pytest.raises(RemoteCallError) as exc_info:
            _run(scenario())
        assert exc_info.value.code == "INVALID_PARAMS"


class TestConcurrency:
    def test_overlapping_calls_on_one_connection(self, live_server, store):
        async def scenario():
            async with StoreClient.connect_url(live_server.url) as client:
                return await asyncio.gather(*(client.add_person(f"p{i}") for i in range(20)))

        ids = _run(scenario())
        assert sorted(ids) == list(range(20))
        assert len(store.get_bill_details()["people"]) == 20

    def test_several_connections(self, live_server, store):
        async def one_client(n: int):
            async with StoreClient.connect_url(live_server.url) as client:
                return [await client.add_person(f"c{n}-{i}") for i in range(5)]

        async def scenario():
            return await asyncio.gather(*(one_client(n) for n in range(4)))

        results = _run(scenario())
        all_ids = [i for ids in results for i in ids]
        assert len(set(all_ids)) == 20
        for ids in results:
            assert ids == sorted(ids)


class TestRawFrames:
    def test_bad_frame_keeps_connection_open(self, live_server):
        async def scenario():
            async with websockets.connect(live_server.url) as ws:
                await ws.send("not json")
                bad = json.loads(await ws.recv())
                await ws.send(json.dumps({"id": 3, "method": "addPerson", "params": ["Eve"]}))
                good = json.loads(await ws.recv())
                return bad, good

        bad, good = _run(scenario())
        assert bad["ok"] is False
        assert bad["id"] is None
        assert bad["error"]["code"] == "BAD_REQUEST"
        assert good == {"id": 3, "ok": True, "result": 0}

    def test_unknown_method(self, live_server):
        async def scenario():
            async with websockets.connect(live_server.url) as ws:
                await ws.send(json.dumps({"id": 1, "method": "dropTables", "params": []}))
                return json.loads(await ws.recv())

        reply = _run(scenario())
        assert reply["id"] == 1
        assert reply["error"]["code"] == "UNKNOWN_METHOD"


class TestTransportFailures:
    def test_connect_refused(self):
        async def scenario():
            async with StoreClient.connect_url("ws://127.0.0.1:1", timeout=2) as client:
                await client.get_bill_details()

        with pytest.raises(RemoteCallError) as exc_info:
            _run(scenario())
        assert exc_info.value.code == "TRANSPORT"



def test_stop_threadsafe_joins_server_thread(store):
    from splitbill.sync.server import start_server_thread

    server = start_server_thread(store, port=0)
    thread = server.thread
    assert thread is not None and thread.is_alive()

    server.stop_threadsafe()

    assert not thread.is_alive()
    assert server.thread is None
    # stopping twice is harmless
    server.stop_threadsafe()
