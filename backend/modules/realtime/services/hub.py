# backend/modules/realtime/services/hub.py

"""
Tenant-scoped realtime hub.

Every connection belongs to exactly one tenant. Room names are always built
from the connection's own tenant id, so a client can never subscribe to, or
publish into, another tenant's rooms.
"""

import asyncio
import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

from core.auth import TokenData

logger = logging.getLogger(__name__)

SUB_ROOM_PATTERN = re.compile(r"^[a-z0-9_-]+(?::[a-z0-9_-]+)*$")

DASHBOARD_ROLES = {"super_admin", "admin", "manager"}
RELAY_ROLES = {"super_admin", "admin", "manager", "vendor", "kitchen", "cashier"}
ROLE_ROOMS = RELAY_ROLES | {"customer"}


class RoomAccessError(ValueError):
    """Raised when a connection asks for a room its role may not see"""
    pass


def check_room_access(role: str, user_id: int, sub_room: str) -> None:
    """
    Refuse sub-rooms that would leak events past the caller's role.

    The dashboard is for managers and above. Customers may only hold their
    own role room and their own ``customer:{id}`` room.
    """
    head = sub_room.split(":", 1)[0]
    if head == "dashboard" and role not in DASHBOARD_ROLES:
        raise RoomAccessError("Room 'dashboard' is restricted to managers")
    if role in RELAY_ROLES:
        return
    if head == "customer":
        if sub_room not in ("customer", f"customer:{user_id}"):
            raise RoomAccessError("Customers may only join their own room")
    elif head in ROLE_ROOMS and sub_room != role:
        raise RoomAccessError(f"Room '{sub_room}' is restricted to staff")


def tenant_room(tenant_id: int, sub_room: Optional[str] = None) -> str:
    """``tenant:{id}`` or ``tenant:{id}:{sub_room}``."""
    if sub_room:
        return f"tenant:{tenant_id}:{sub_room}"
    return f"tenant:{tenant_id}"


def default_rooms(tenant_id: int, role: str, user_id: int) -> List[str]:
    rooms = [tenant_room(tenant_id), tenant_room(tenant_id, role)]
    if role in DASHBOARD_ROLES:
        rooms.append(tenant_room(tenant_id, "dashboard"))
    if role == "customer":
        rooms.append(tenant_room(tenant_id, f"customer:{user_id}"))
    return rooms


def encode_event(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": data}, default=str)


@dataclass
class Connection:
    sid: str
    websocket: WebSocket
    user_id: int
    tenant_id: int
    role: str
    rooms: Set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=datetime.utcnow)


class RealtimeHub:
    """In-process connection map with optional cross-instance backplane"""

    def __init__(self):
        self.server_id = str(uuid.uuid4())
        self.connections: Dict[str, Connection] = {}
        self.rooms: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()
        self.backplane = None

    # ========== Connection lifecycle ==========

    async def register(self, websocket: WebSocket, token_data: TokenData) -> Connection:
        """Track an accepted, authenticated socket and join its default rooms."""
        conn = Connection(
            sid=uuid.uuid4().hex,
            websocket=websocket,
            user_id=token_data.user_id,
            tenant_id=token_data.tenant_id,
            role=token_data.role,
        )
        async with self._lock:
            self.connections[conn.sid] = conn
            for room in default_rooms(conn.tenant_id, conn.role, conn.user_id):
                self._join(conn, room)

        logger.info(
            f"Realtime connect sid={conn.sid} user={conn.user_id} "
            f"tenant={conn.tenant_id} role={conn.role}"
        )
        return conn

    async def disconnect(self, sid: str) -> None:
        async with self._lock:
            conn = self.connections.pop(sid, None)
            if conn is None:
                return
            for room in list(conn.rooms):
                self._leave(conn, room)
        logger.info(f"Realtime disconnect sid={sid} tenant={conn.tenant_id}")

    def _join(self, conn: Connection, room: str) -> None:
        self.rooms.setdefault(room, set()).add(conn.sid)
        conn.rooms.add(room)

    def _leave(self, conn: Connection, room: str) -> None:
        members = self.rooms.get(room)
        if members is not None:
            members.discard(conn.sid)
            if not members:
                del self.rooms[room]
        conn.rooms.discard(room)

    async def join(self, conn: Connection, sub_room: str) -> str:
        """Subscribe a connection to a sub-room of its own tenant."""
        if not isinstance(sub_room, str) or not SUB_ROOM_PATTERN.match(sub_room):
            raise ValueError("Invalid room name")
        try:
            check_room_access(conn.role, conn.user_id, sub_room)
        except RoomAccessError:
            logger.warning(
                f"Refused join of {sub_room!r} by user {conn.user_id} "
                f"({conn.role}) in tenant {conn.tenant_id}"
            )
            raise
        room = tenant_room(conn.tenant_id, sub_room)
        async with self._lock:
            if conn.sid in self.connections:
                self._join(conn, room)
        return room

    async def leave(self, conn: Connection, sub_room: str) -> str:
        if not isinstance(sub_room, str) or not SUB_ROOM_PATTERN.match(sub_room):
            raise ValueError("Invalid room name")
        room = tenant_room(conn.tenant_id, sub_room)
        async with self._lock:
            self._leave(conn, room)
        return room

    # ========== Delivery ==========

    async def send(self, conn: Connection, event: str, data: Any) -> bool:
        try:
            await conn.websocket.send_text(encode_event(event, data))
            return True
        except Exception as e:
            logger.warning(f"Send to {conn.sid} failed: {e}")
            await self.disconnect(conn.sid)
            return False

    async def deliver_local(self, room: str, event: str, data: Any) -> int:
        """Send to every local member of a room; returns delivered count."""
        async with self._lock:
            members = [
                self.connections[sid]
                for sid in self.rooms.get(room, ())
                if sid in self.connections
            ]
        if not members:
            return 0

        message = encode_event(event, data)
        delivered = 0
        dead = []
        for conn in members:
            try:
                await conn.websocket.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping dead realtime connection {conn.sid}: {e}")
                dead.append(conn.sid)

        for sid in dead:
            await self.disconnect(sid)
        return delivered

    async def emit(self, room: str, event: str, data: Any, propagate: bool = True) -> int:
        """Deliver locally and, when a backplane is attached, to other instances."""
        delivered = await self.deliver_local(room, event, data)
        if propagate and self.backplane is not None:
            try:
                await self.backplane.publish(room, event, data)
            except Exception as e:
                logger.error(f"Backplane publish failed for {room}/{event}: {e}")
        return delivered

    async def emit_to_tenant(
        self, tenant_id: int, event: str, data: Any, sub_room: Optional[str] = None
    ) -> int:
        return await self.emit(tenant_room(tenant_id, sub_room), event, data)

    # ========== Backplane ==========

    async def attach_backplane(self, backplane) -> None:
        await backplane.start(self.handle_backplane_message)
        self.backplane = backplane
        logger.info(f"Realtime backplane attached (server {self.server_id})")

    async def detach_backplane(self) -> None:
        if self.backplane is not None:
            await self.backplane.close()
            self.backplane = None

    async def handle_backplane_message(self, message: Dict[str, Any]) -> None:
        if message.get("server_id") == self.server_id:
            return
        room = message.get("room")
        event = message.get("event")
        if not room or not event:
            logger.warning(f"Ignoring malformed backplane message: {message}")
            return
        await self.deliver_local(room, event, message.get("data"))

    # ========== Client events ==========

    async def handle_message(self, conn: Connection, raw: str) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            await self.send(conn, "error", {"message": "Invalid JSON message"})
            return
        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            await self.send(conn, "error", {"message": "Messages need an 'event' field"})
            return

        data = message.get("data")
        if data is None:
            data = {}
        await self.handle_client_event(conn, message["event"], data)

    async def handle_client_event(self, conn: Connection, event: str, data: Any) -> None:
        if event == "ping":
            await self.send(conn, "pong", {"timestamp": datetime.utcnow().isoformat()})
            return

        if event in ("join", "leave"):
            sub_room = data.get("room") if isinstance(data, dict) else None
            try:
                if event == "join":
                    room = await self.join(conn, sub_room)
                else:
                    room = await self.leave(conn, sub_room)
            except ValueError as e:
                await self.send(conn, "error", {"message": str(e)})
                return
            await self.send(conn, "joined" if event == "join" else "left", {"room": room})
            return

        relay = {
            "order:created": self._relay_order_created,
            "order:status:updated": self._relay_order_status,
            "sale:completed": self._relay_sale_completed,
        }.get(event)
        if relay is None:
            await self.send(conn, "error", {"message": f"Unknown event '{event}'"})
            return
        if conn.role not in RELAY_ROLES:
            await self.send(conn, "error", {"message": f"Role '{conn.role}' may not send '{event}'"})
            return
        if not isinstance(data, dict):
            await self.send(conn, "error", {"message": "Event data must be an object"})
            return
        await relay(conn.tenant_id, data)

    async def _relay_order_created(self, tenant_id: int, data: Dict[str, Any]) -> None:
        payload = {
            "order_id": data.get("order_id", data.get("id")),
            "items": data.get("items", []),
            "total": data.get("total"),
            "customer": data.get("customer"),
            "timestamp": datetime.utcnow().isoformat(),
        }
        await self.emit_to_tenant(tenant_id, "order:new", payload, "kitchen")
        await self.emit_to_tenant(tenant_id, "order:new", payload, "dashboard")

    async def _relay_order_status(self, tenant_id: int, data: Dict[str, Any]) -> None:
        payload = {
            "order_id": data.get("order_id"),
            "status": data.get("status"),
            "timestamp": datetime.utcnow().isoformat(),
        }
        customer_id = data.get("customer_id")
        if customer_id is not None:
            await self.emit_to_tenant(
                tenant_id, "order:status", payload, f"customer:{customer_id}"
            )
        await self.emit_to_tenant(tenant_id, "order:updated", payload, "dashboard")

    async def _relay_sale_completed(self, tenant_id: int, data: Dict[str, Any]) -> None:
        payload = {**data, "timestamp": datetime.utcnow().isoformat()}
        await self.emit_to_tenant(tenant_id, "sale:new", payload, "dashboard")

    # ========== Introspection ==========

    def stats(self) -> Dict[str, Any]:
        return {
            "server_id": self.server_id,
            "connections": len(self.connections),
            "rooms": len(self.rooms),
            "backplane": self.backplane.state if self.backplane is not None else "disabled",
        }

    def room_members(self, room: str) -> Set[str]:
        return set(self.rooms.get(room, ()))


# Global hub instance
realtime_hub = RealtimeHub()


def get_realtime_hub() -> RealtimeHub:
    return realtime_hub
