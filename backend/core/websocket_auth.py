"""
WebSocket authentication for JWT token verification.

A client either passes ``?token=`` on the handshake or sends
``{"type": "auth", "token": "..."}`` as its first frame.
"""

import asyncio
import json
import logging
import os
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from .auth import TokenData, load_user, verify_token

logger = logging.getLogger(__name__)

AUTH_MESSAGE_TIMEOUT = float(os.getenv("WS_AUTH_MESSAGE_TIMEOUT", "5"))  # seconds
MAX_AUTH_MESSAGE_SIZE = int(os.getenv("WS_MAX_AUTH_MESSAGE_SIZE", "4096"))  # bytes


class WebSocketAuthError(Exception):
    """Raised when a socket cannot be authenticated"""
    pass


def get_client_ip(websocket: WebSocket) -> str:
    """Extract client IP from WebSocket connection"""
    if websocket.client:
        return websocket.client.host
    return "unknown"


async def _receive_auth_token(websocket: WebSocket) -> str:
    try:
        auth_message = await asyncio.wait_for(
            websocket.receive_text(), timeout=AUTH_MESSAGE_TIMEOUT
        )
    except asyncio.TimeoutError:
        raise WebSocketAuthError("Authentication timeout")
    except WebSocketDisconnect:
        raise WebSocketAuthError("Client disconnected during authentication")

    if len(auth_message.encode()) > MAX_AUTH_MESSAGE_SIZE:
        raise WebSocketAuthError("Auth message too large")

    try:
        auth_data = json.loads(auth_message)
    except json.JSONDecodeError:
        raise WebSocketAuthError("Invalid auth message JSON")

    if not isinstance(auth_data, dict) or auth_data.get("type") != "auth":
        raise WebSocketAuthError("First message must be auth message")

    token = auth_data.get("token")
    if not token or not isinstance(token, str):
        raise WebSocketAuthError("Invalid token format")
    return token


async def authenticate_websocket(
    websocket: WebSocket, token: Optional[str] = None
) -> TokenData:
    """
    Authenticate an already accepted WebSocket connection.

    Args:
        websocket: The accepted WebSocket connection
        token: JWT from the ``token`` handshake parameter, if any

    Returns:
        TokenData for the connected user

    Raises:
        WebSocketAuthError: If authentication fails
    """
    if not token:
        token = await _receive_auth_token(websocket)

    token_data = verify_token(token)
    if token_data is None:
        logger.warning(f"Invalid websocket token from {get_client_ip(websocket)}")
        raise WebSocketAuthError("Invalid or expired token")

    if token_data.tenant_id is None:
        raise WebSocketAuthError("Token is not bound to a tenant")

    return token_data


def verify_socket_account(db: Session, token_data: TokenData) -> TokenData:
    """
    Re-check the token's user and tenant against the database.

    Returns TokenData carrying the user's current role.

    Raises:
        WebSocketAuthError: If the user or tenant is missing or inactive
    """
    from modules.tenants.models.tenant_models import Tenant

    user = load_user(db, token_data.user_id)
    if user is None or not user.is_active:
        raise WebSocketAuthError("User not found or inactive")
    if user.tenant_id != token_data.tenant_id:
        raise WebSocketAuthError("Token tenant does not match user")

    tenant = db.query(Tenant).filter(Tenant.id == token_data.tenant_id).first()
    if tenant is None:
        raise WebSocketAuthError("Tenant not found")
    if not tenant.is_active:
        raise WebSocketAuthError("Tenant inactive")

    role = user.role.value if hasattr(user.role, "value") else user.role
    return token_data.model_copy(update={"role": role})
