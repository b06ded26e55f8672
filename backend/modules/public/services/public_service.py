# backend/modules/public/services/public_service.py

"""
Read models for the customer-facing storefront.

Only active categories, available products and customizations, and settings
flagged ``is_public`` ever leave this service.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from core.exceptions import NotFoundError, PermissionDeniedError
from modules.catalog.models.catalog_models import Category, Product
from modules.settings.models.settings_models import Setting
from modules.tenants.models.tenant_models import Tenant


class PublicStorefrontService:
    def __init__(self, db: Session):
        self.db = db

    def resolve_tenant(self, slug: str) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.slug == slug.strip().lower()).first()
        if tenant is None:
            raise NotFoundError("Tenant", slug)
        if not tenant.is_active:
            raise PermissionDeniedError(
                "This establishment is not accepting orders", error="Tenant inactive"
            )
        return tenant

    def list_active_tenants(self) -> List[Tenant]:
        return (
            self.db.query(Tenant)
            .filter(Tenant.is_active.is_(True))
            .order_by(Tenant.name.asc())
            .all()
        )

    def public_settings(self, tenant_id: int) -> Dict[str, Any]:
        rows = (
            self.db.query(Setting)
            .filter(Setting.tenant_id == tenant_id, Setting.is_public.is_(True))
            .order_by(Setting.key)
            .all()
        )
        return {row.key: row.value for row in rows}

    def menu(
        self,
        tenant: Tenant,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        categories_query = self.db.query(Category).filter(
            Category.tenant_id == tenant.id, Category.is_active.is_(True)
        )
        if category_id is not None:
            categories_query = categories_query.filter(Category.id == category_id)
        categories = categories_query.order_by(Category.order_index, Category.name).all()

        products_query = (
            self.db.query(Product)
            .options(selectinload(Product.customizations))
            .filter(Product.tenant_id == tenant.id, Product.is_available.is_(True))
        )
        if search:
            pattern = f"%{search.lower()}%"
            products_query = products_query.filter(
                or_(
                    func.lower(Product.name).like(pattern),
                    func.lower(Product.description).like(pattern),
                )
            )
        products = products_query.order_by(Product.order_index, Product.name).all()

        by_category: Dict[int, List[Product]] = {}
        for product in products:
            by_category.setdefault(product.category_id, []).append(product)

        sections = []
        for category in categories:
            items = by_category.get(category.id, [])
            sections.append(
                {
                    "id": category.id,
                    "name": category.name,
                    "description": category.description,
                    "order_index": category.order_index,
                    "products": [
                        {
                            "id": p.id,
                            "category_id": p.category_id,
                            "name": p.name,
                            "description": p.description,
                            "price": p.price,
                            "image_url": p.image_url,
                            "preparation_time": p.preparation_time,
                            "customizations": [
                                {
                                    "id": c.id,
                                    "product_id": c.product_id,
                                    "name": c.name,
                                    "type": c.type,
                                    "price": c.price,
                                    "is_available": c.is_available,
                                }
                                for c in p.customizations
                                if c.is_available
                            ],
                        }
                        for p in items
                    ],
                }
            )
        return sections
