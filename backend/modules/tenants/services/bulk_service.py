# backend/modules/tenants/services/bulk_service.py

"""
Transactional bulk operations over lists of tenants.

A batch either applies to every requested tenant or to none of them; the
caller always gets a per-tenant result describing what happened.
"""

import logging
from typing import Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from ..models.tenant_models import Tenant
from ..schemas.tenant_schemas import BulkItemResult, BulkOperationResult

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[int]) -> List[int]:
    seen = set()
    ordered = []
    for tenant_id in ids:
        if tenant_id not in seen:
            seen.add(tenant_id)
            ordered.append(tenant_id)
    return ordered


class TenantBulkService:
    """Applies status changes and deletions to many tenants at once"""

    def __init__(self, db: Session):
        self.db = db

    def _load(self, tenant_ids: List[int]) -> Dict[int, Tenant]:
        rows = self.db.query(Tenant).filter(Tenant.id.in_(tenant_ids)).all()
        return {row.id: row for row in rows}

    def _reject_missing(
        self, tenant_ids: List[int], found: Dict[int, Tenant], operation: str
    ) -> None:
        missing = [tid for tid in tenant_ids if tid not in found]
        if not missing:
            return

        results = [
            BulkItemResult(
                tenant_id=tid,
                success=False,
                previous_active=found[tid].is_active if tid in found else None,
                is_active=found[tid].is_active if tid in found else None,
                error=None if tid in found else "Tenant not found",
            )
            for tid in tenant_ids
        ]
        report = BulkOperationResult(
            success=False, requested=len(tenant_ids), affected=0, results=results
        )
        logger.warning(f"Bulk {operation} aborted, unknown tenants: {missing}")
        raise NotFoundError(
            "Tenant",
            ", ".join(str(tid) for tid in missing),
            details=report.model_dump(),
        )

    def bulk_toggle_status(self, tenant_ids: List[int], active: bool) -> BulkOperationResult:
        """Set ``is_active`` on every listed tenant in one transaction."""
        ids = _unique(tenant_ids)
        try:
            found = self._load(ids)
            self._reject_missing(ids, found, "toggle-status")

            results = []
            affected = 0
            for tid in ids:
                tenant = found[tid]
                previous = tenant.is_active
                if previous != active:
                    tenant.is_active = active
                    affected += 1
                results.append(
                    BulkItemResult(
                        tenant_id=tid,
                        success=True,
                        previous_active=previous,
                        is_active=active,
                    )
                )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Bulk toggle-status failed, transaction rolled back")
            raise
        except NotFoundError:
            self.db.rollback()
            raise

        logger.info(
            f"Bulk toggle-status active={active}: {affected} of {len(ids)} tenants changed"
        )
        return BulkOperationResult(
            success=True, requested=len(ids), affected=affected, results=results
        )

    def bulk_delete(self, tenant_ids: List[int]) -> BulkOperationResult:
        """Delete every listed tenant, with its data, in one transaction."""
        ids = _unique(tenant_ids)
        try:
            found = self._load(ids)
            self._reject_missing(ids, found, "delete")

            results = []
            for tid in ids:
                tenant = found[tid]
                results.append(
                    BulkItemResult(
                        tenant_id=tid,
                        success=True,
                        previous_active=tenant.is_active,
                    )
                )
                self.db.delete(tenant)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Bulk delete failed, transaction rolled back")
            raise
        except NotFoundError:
            self.db.rollback()
            raise

        logger.info(f"Bulk delete removed {len(ids)} tenants")
        return BulkOperationResult(
            success=True, requested=len(ids), affected=len(ids), results=results
        )
