# backend/modules/realtime/services/emitter.py

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .hub import RealtimeHub, get_realtime_hub

logger = logging.getLogger(__name__)


class RealtimeEmitter:
    """Server-side entry point services use to push tenant events"""

    def __init__(self, hub: RealtimeHub):
        self.hub = hub

    async def broadcast_to_tenant(self, tenant_id: int, event: str, data: Any) -> int:
        return await self.hub.emit_to_tenant(tenant_id, event, data)

    async def emit_to_role(self, tenant_id: int, role: str, event: str, data: Any) -> int:
        return await self.hub.emit_to_tenant(tenant_id, event, data, role)

    async def emit_to_dashboard(self, tenant_id: int, event: str, data: Any) -> int:
        return await self.hub.emit_to_tenant(tenant_id, event, data, "dashboard")

    async def notify_new_order(self, tenant_id: int, order: Dict[str, Any]) -> None:
        """Kitchen and dashboard get ``order:new``."""
        payload = {
            "order_id": order.get("id"),
            "order_number": order.get("order_number"),
            "items": order.get("items", []),
            "total": order.get("total_amount"),
            "customer": order.get("customer_name"),
            "delivery_type": order.get("delivery_type"),
            "timestamp": datetime.utcnow().isoformat(),
        }
        await self.hub.emit_to_tenant(tenant_id, "order:new", payload, "kitchen")
        await self.hub.emit_to_tenant(tenant_id, "order:new", payload, "dashboard")
        logger.debug(f"order:new emitted for order {payload['order_id']} tenant {tenant_id}")

    async def update_order_status(
        self,
        tenant_id: int,
        order_id: int,
        status: str,
        customer_id: Optional[int] = None,
        order_number: Optional[str] = None,
    ) -> None:
        payload = {
            "order_id": order_id,
            "order_number": order_number,
            "status": status,
            "timestamp": datetime.utcnow().isoformat(),
        }
        if customer_id is not None:
            await self.hub.emit_to_tenant(
                tenant_id, "order:status", payload, f"customer:{customer_id}"
            )
        await self.hub.emit_to_tenant(tenant_id, "order:updated", payload, "dashboard")

    async def notify_new_sale(self, tenant_id: int, sale: Dict[str, Any]) -> None:
        payload = {**sale, "timestamp": datetime.utcnow().isoformat()}
        await self.hub.emit_to_tenant(tenant_id, "sale:new", payload, "dashboard")


# Global emitter bound to the global hub
realtime_emitter = RealtimeEmitter(get_realtime_hub())


def get_realtime_emitter() -> RealtimeEmitter:
    return realtime_emitter
