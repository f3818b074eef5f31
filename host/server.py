from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import websockets
from websockets.asyncio.server import ServerConnection, serve

from engine.errors import Conflict, InvalidArgument, PokerError, TableNotFound
from tables.session import TableSession

LOGGER = logging.getLogger("poker_host")

# HostServer carries the session API over WebSocket JSON messages. Every
# poker rule lives in the engine; this class only parses requests, maps
# errors to codes and pushes fresh table state to seated players.

IdentityResolver = Callable[[Dict[str, Any]], Optional[str]]
Handler = Callable[[str, Dict[str, Any]], Tuple[Any, Optional[str]]]


def identity_from_hello(hello: Dict[str, Any]) -> Optional[str]:
    """Default resolver: trust the ``identity`` field of the hello message."""
    value = hello.get("identity")
    if not isinstance(value, str):
        return None
    return value.strip() or None


@dataclass(eq=False)
class ClientSession:
    identity: str
    websocket: ServerConnection


class HostServer:
    def __init__(
        self,
        tables: TableSession,
        resolver: IdentityResolver = identity_from_hello,
    ) -> None:
        self.tables = tables
        self.resolver = resolver
        self.clients: Dict[str, List[ClientSession]] = {}
        self.lock = asyncio.Lock()
        self.handlers: Dict[str, Handler] = {
            "profile": self._op_profile,
            "set_alias": self._op_set_alias,
            "list_tables": self._op_list_tables,
            "get_table": self._op_get_table,
            "current_table": self._op_current_table,
            "create_table": self._op_create_table,
            "join": self._op_join,
            "leave": self._op_leave,
            "set_ready": self._op_set_ready,
            "start": self._op_start,
            "bet": self._op_bet,
            "check": self._op_check,
            "fold": self._op_fold,
        }

    async def start(self, host: str = "0.0.0.0", port: int = 8765) -> None:
        async with serve(self._handle_connection, host, port):
            LOGGER.info("Table host listening on %s:%s", host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        # First message must be "hello" so we know who is calling.
        hello = await self._read_message(websocket)
        if hello is None or hello.get("type") != "hello":
            await self._send_error(websocket, code="BAD_HELLO", msg="Expected hello")
            await websocket.close()
            return
        identity = self.resolver(hello)
        if not identity:
            await self._send_error(websocket, code="UNAUTHENTICATED", msg="Not authenticated")
            await websocket.close()
            return

        client = ClientSession(identity=identity, websocket=websocket)
        async with self.lock:
            self.clients.setdefault(identity, []).append(client)
        LOGGER.info("Client connected as %s", identity)

        profile = self.tables.profile(identity)
        await self._send_json(websocket, "welcome", {"identity": identity, "profile": asdict(profile)})

        try:
            async for raw in websocket:
                await self._handle_request(client, self._decode(raw))
        except websockets.ConnectionClosed:
            pass
        finally:
            async with self.lock:
                remaining = [other for other in self.clients.get(identity, []) if other is not client]
                if remaining:
                    self.clients[identity] = remaining
                else:
                    self.clients.pop(identity, None)
            LOGGER.info("Client %s disconnected", identity)

    async def _handle_request(self, client: ClientSession, message: Dict[str, Any]) -> None:
        req_type = message.get("type")
        req_id = message.get("req_id")
        handler = self.handlers.get(req_type) if isinstance(req_type, str) else None
        if handler is None:
            await self._send_error(client.websocket, code="UNKNOWN_TYPE", msg="Unsupported message type", req_id=req_id)
            return

        try:
            data, table_id = self._call(handler, client.identity, message)
        except PokerError as exc:
            LOGGER.warning("Rejected %s from %s: %s", req_type, client.identity, exc.msg)
            await self._send_error(client.websocket, code=exc.code, msg=exc.msg, req_id=req_id)
            return
        except Exception:
            LOGGER.exception("Request %s from %s failed", req_type, client.identity)
            await self._send_error(client.websocket, code="INTERNAL", msg="Internal error", req_id=req_id)
            return

        await self._send_json(client.websocket, "result", {"req_id": req_id, "op": req_type, "data": data})
        if table_id is not None:
            await self._publish_table(table_id)

    def _call(self, handler: Handler, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        retries = self.tables.config.conflict_retries
        attempt = 0
        while True:
            try:
                return handler(identity, message)
            except Conflict:
                if attempt >= retries:
                    raise
                attempt += 1
                LOGGER.info("Retrying %s for %s after conflict (%s/%s)", message.get("type"), identity, attempt, retries)

    async def _publish_table(self, table_id: str) -> None:
        try:
            seated = self.tables.get_table(None, table_id).seats
        except TableNotFound:
            return
        async with self.lock:
            targets = [(seat.identity, client) for seat in seated for client in self.clients.get(seat.identity, [])]
        # Each player gets a view redacted for them alone.
        for identity, client in targets:
            view = self.tables.get_table(identity, table_id)
            await self._send_json(client.websocket, "table_state", view.as_payload())

    # Request handlers ----------------------------------------------------

    def _op_profile(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        return asdict(self.tables.profile(identity)), None

    def _op_set_alias(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        return asdict(self.tables.set_alias(identity, message.get("alias"))), None

    def _op_list_tables(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        limit = message.get("limit")
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int)):
            raise InvalidArgument("limit must be an integer")
        return [summary.as_payload() for summary in self.tables.list_tables(limit)], None

    def _op_get_table(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        return self.tables.get_table(identity, _table_id(message)).as_payload(), None

    def _op_current_table(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        view = self.tables.current_table(identity)
        return (view.as_payload() if view else None), None

    def _op_create_table(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        view = self.tables.create_table(
            identity,
            message.get("name"),
            message.get("min_bet"),
            message.get("max_players", 6),
        )
        return view.as_payload(), view.table_id

    def _op_join(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        table_id = _table_id(message)
        return self.tables.join(identity, table_id).as_payload(), table_id

    def _op_leave(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        table_id = _table_id(message)
        view = self.tables.leave(identity, table_id)
        return (view.as_payload() if view else None), table_id

    def _op_set_ready(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        table_id = _table_id(message)
        ready = bool(message.get("ready", True))
        return self.tables.set_ready(identity, table_id, ready).as_payload(), table_id

    def _op_start(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        table_id = _table_id(message)
        return self.tables.start(identity, table_id).as_payload(), table_id

    def _op_bet(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        table_id = _table_id(message)
        amount = message.get("amount", 0)
        return self.tables.bet(identity, table_id, amount).as_payload(), table_id

    def _op_check(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        table_id = _table_id(message)
        return self.tables.check(identity, table_id).as_payload(), table_id

    def _op_fold(self, identity: str, message: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
        table_id = _table_id(message)
        return self.tables.fold(identity, table_id).as_payload(), table_id

    # Wire helpers --------------------------------------------------------

    async def _send_json(self, websocket: ServerConnection, msg_type: str, payload: Dict[str, Any]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(
        self,
        websocket: ServerConnection,
        code: str,
        msg: str,
        req_id: Optional[object] = None,
    ) -> None:
        payload: Dict[str, Any] = {"code": code, "msg": msg}
        if req_id is not None:
            payload["req_id"] = req_id
        await self._send_json(websocket, "error", payload)

    def _envelope(self, msg_type: str, payload: Dict[str, Any]) -> str:
        body: Dict[str, Any] = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    async def _read_message(self, websocket: ServerConnection) -> Optional[Dict[str, Any]]:
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=5)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return None
        return self._decode(raw)

    def _decode(self, raw: Any) -> Dict[str, Any]:
        try:
            message = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return {}
        return message if isinstance(message, dict) else {}


def _table_id(message: Dict[str, Any]) -> str:
    value = message.get("table_id")
    if not isinstance(value, str) or not value:
        raise InvalidArgument("table_id required")
    return value
