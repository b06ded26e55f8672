# backend/modules/realtime/routes/realtime_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from core.auth import TokenData
from core.database import get_db
from core.websocket_auth import (WebSocketAuthError, authenticate_websocket,
                                 get_client_ip, verify_socket_account)
from ..services.hub import RealtimeHub, encode_event, get_realtime_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


def _check_account(websocket: WebSocket, token_data: TokenData) -> TokenData:
    # Sockets are long lived; the session is only held for the handshake lookup
    provider = websocket.app.dependency_overrides.get(get_db, get_db)
    session_gen = provider()
    db = next(session_gen)
    try:
        return verify_socket_account(db, token_data)
    finally:
        session_gen.close()


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: RealtimeHub = Depends(get_realtime_hub),
):
    """
    Tenant-scoped realtime channel.

    Authenticate with ``?token=`` or a first ``{"type": "auth", "token"}``
    frame. Frames in both directions are ``{"event": ..., "data": ...}``.
    """
    await websocket.accept()

    try:
        token_data = await authenticate_websocket(websocket, token)
        token_data = await run_in_threadpool(_check_account, websocket, token_data)
    except WebSocketAuthError as e:
        logger.warning(f"Rejected realtime socket from {get_client_ip(websocket)}: {e}")
        await websocket.send_text(encode_event("error", {"message": str(e)}))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    conn = await hub.register(websocket, token_data)
    await hub.send(
        conn,
        "connected",
        {
            "user_id": conn.user_id,
            "tenant_id": conn.tenant_id,
            "role": conn.role,
            "rooms": sorted(conn.rooms),
        },
    )

    try:
        while True:
            raw = await websocket.receive_text()
            await hub.handle_message(conn, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(conn.sid)
