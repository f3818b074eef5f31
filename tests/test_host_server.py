import asyncio
import json
from typing import List, Optional

from engine.errors import Conflict
from host.server import ClientSession, HostServer, identity_from_hello

from .helpers import create_session


# Fake sockets so we can exercise async paths without opening real connections.
class DummyWebSocket:
    def __init__(self, incoming: Optional[List[dict]] = None) -> None:
        self.incoming = [json.dumps(message) for message in incoming or []]
        self.sent: list[str] = []
        self.closed = False

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def recv(self) -> str:
        return self.incoming.pop(0)

    async def close(self, *args, **kwargs) -> None:
        self.closed = True

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        if not self.incoming:
            raise StopAsyncIteration
        return self.incoming.pop(0)

    def messages(self, msg_type: Optional[str] = None) -> List[dict]:
        decoded = [json.loads(raw) for raw in self.sent]
        return [message for message in decoded if msg_type is None or message["type"] == msg_type]


def setup_server(*identities: str):
    server = HostServer(create_session())
    clients = []
    for identity in identities:
        client = ClientSession(identity=identity, websocket=DummyWebSocket())
        server.clients.setdefault(identity, []).append(client)
        clients.append(client)
    return server, clients


def request(server: HostServer, client: ClientSession, msg_type: str, req_id: int = 1, **fields) -> None:
    message = {"type": msg_type, "req_id": req_id, **fields}
    asyncio.run(server._handle_request(client, message))


def test_identity_from_hello():
    assert identity_from_hello({"identity": " alice "}) == "alice"
    assert identity_from_hello({"identity": ""}) is None
    assert identity_from_hello({"identity": 7}) is None
    assert identity_from_hello({}) is None


def test_create_join_start_flow_publishes_redacted_state():
    server, (alice, bob) = setup_server("alice", "bob")

    request(server, alice, "create_table", name="Black Pearl", min_bet=20, max_players=4)
    created = alice.websocket.messages("result")[-1]
    assert created["v"] == 1
    assert created["req_id"] == 1
    assert created["op"] == "create_table"
    table_id = created["data"]["table_id"]

    request(server, bob, "join", req_id=2, table_id=table_id)
    request(server, bob, "set_ready", req_id=3, table_id=table_id, ready=True)
    request(server, alice, "start", req_id=4, table_id=table_id)

    for client in (alice, bob):
        state = client.websocket.messages("table_state")[-1]
        assert state["status"] == "playing"
        assert state["deck"] == []
        for seat in state["seats"]:
            if seat["identity"] == client.identity:
                assert "hidden" not in seat["hole_cards"]
            else:
                assert seat["hole_cards"] == ["hidden", "hidden"]


def test_out_of_turn_action_reports_forbidden():
    server, (alice, bob) = setup_server("alice", "bob")
    request(server, alice, "create_table", name="Deck", min_bet=20)
    table_id = alice.websocket.messages("result")[-1]["data"]["table_id"]
    request(server, bob, "join", req_id=2, table_id=table_id)
    request(server, bob, "set_ready", req_id=3, table_id=table_id)
    request(server, alice, "start", req_id=4, table_id=table_id)

    # Heads-up: bob (non-dealer) acts first.
    request(server, alice, "bet", req_id=5, table_id=table_id, amount=10)
    error = alice.websocket.messages("error")[-1]
    assert error["code"] == "FORBIDDEN"
    assert error["msg"] == "Not your turn"
    assert error["req_id"] == 5

    sent_before = len(bob.websocket.sent)
    request(server, bob, "fold", req_id=6, table_id=table_id)
    assert bob.websocket.messages("result")[-1]["data"]["status"] == "finished"
    assert len(bob.websocket.sent) > sent_before


def test_unknown_type_and_bad_arguments():
    server, (alice,) = setup_server("alice")

    request(server, alice, "shuffle_deck", req_id=9)
    error = alice.websocket.messages("error")[-1]
    assert error["code"] == "UNKNOWN_TYPE"
    assert error["req_id"] == 9

    request(server, alice, "join", req_id=10)
    assert alice.websocket.messages("error")[-1]["code"] == "INVALID_ARGUMENT"

    request(server, alice, "list_tables", req_id=11, limit="many")
    assert alice.websocket.messages("error")[-1]["code"] == "INVALID_ARGUMENT"

    request(server, alice, "get_table", req_id=12, table_id="T-404")
    assert alice.websocket.messages("error")[-1]["code"] == "NOT_FOUND"


def test_profile_and_listing_queries():
    server, (alice,) = setup_server("alice")
    request(server, alice, "set_alias", alias="Calico Jack")
    assert alice.websocket.messages("result")[-1]["data"]["alias"] == "Calico Jack"

    request(server, alice, "create_table", req_id=2, name="Revenge", min_bet=10)
    request(server, alice, "list_tables", req_id=3)
    listing = alice.websocket.messages("result")[-1]["data"]
    assert [summary["name"] for summary in listing] == ["Revenge"]

    request(server, alice, "current_table", req_id=4)
    assert alice.websocket.messages("result")[-1]["data"]["name"] == "Revenge"


def test_leave_last_seat_returns_no_view():
    server, (alice,) = setup_server("alice")
    request(server, alice, "create_table", name="Ghost Ship", min_bet=10)
    table_id = alice.websocket.messages("result")[-1]["data"]["table_id"]
    request(server, alice, "leave", req_id=2, table_id=table_id)
    assert alice.websocket.messages("result")[-1]["data"] is None


def test_conflict_is_retried(monkeypatch):
    server, (alice,) = setup_server("alice")
    calls = {"count": 0}
    real_profile = server.tables.profile

    def flaky_profile(identity):
        calls["count"] += 1
        if calls["count"] == 1:
            raise Conflict()
        return real_profile(identity)

    monkeypatch.setattr(server.tables, "profile", flaky_profile)
    request(server, alice, "profile")
    assert calls["count"] == 2
    assert alice.websocket.messages("result")[-1]["data"]["identity"] == "alice"


def test_conflict_surfaces_after_retries(monkeypatch):
    server, (alice,) = setup_server("alice")

    def always_conflict(identity):
        raise Conflict()

    monkeypatch.setattr(server.tables, "profile", always_conflict)
    request(server, alice, "profile")
    assert alice.websocket.messages("error")[-1]["code"] == "CONFLICT"


def test_unexpected_error_reports_internal(monkeypatch):
    server, (alice,) = setup_server("alice")

    def broken(identity):
        raise KeyError("boom")

    monkeypatch.setattr(server.tables, "profile", broken)
    request(server, alice, "profile")
    assert alice.websocket.messages("error")[-1]["code"] == "INTERNAL"


def test_connection_requires_hello():
    server = HostServer(create_session())
    websocket = DummyWebSocket([{"type": "profile"}])
    asyncio.run(server._handle_connection(websocket))
    assert websocket.messages()[-1]["code"] == "BAD_HELLO"
    assert websocket.closed


def test_connection_without_identity_is_rejected():
    server = HostServer(create_session())
    websocket = DummyWebSocket([{"type": "hello"}])
    asyncio.run(server._handle_connection(websocket))
    assert websocket.messages()[-1]["code"] == "UNAUTHENTICATED"
    assert websocket.closed


def test_connection_lifecycle_registers_and_unregisters():
    server = HostServer(create_session())
    websocket = DummyWebSocket([
        {"type": "hello", "identity": "alice"},
        {"type": "profile", "req_id": 1},
        "not-an-object",
    ])
    asyncio.run(server._handle_connection(websocket))

    welcome, result, error = websocket.messages()
    assert welcome["type"] == "welcome"
    assert welcome["profile"]["balance"] == 1_000
    assert result["data"]["identity"] == "alice"
    assert error["code"] == "UNKNOWN_TYPE"
    assert server.clients == {}
