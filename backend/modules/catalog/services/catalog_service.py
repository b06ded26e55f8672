# backend/modules/catalog/services/catalog_service.py

"""
Tenant-scoped catalog management: categories, products and customizations.

Every query goes through ``apply_tenant_filter`` so a service bound to one
tenant can never read or touch another tenant's rows.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.response_models import PaginationMeta, paginate
from core.tenant_context import apply_tenant_filter
from modules.billing.services.billing_service import BillingService
from ..enums.catalog_enums import ProductSortField, SortOrder
from ..models.catalog_models import Category, Product, ProductCustomization
from ..schemas.catalog_schemas import (CategoryCreate, CategoryUpdate,
                                       CustomizationCreate, ProductCreate,
                                       ProductUpdate)

logger = logging.getLogger(__name__)

PRODUCT_SORT_COLUMNS = {
    ProductSortField.NAME: Product.name,
    ProductSortField.PRICE: Product.price,
    ProductSortField.ORDER_INDEX: Product.order_index,
    ProductSortField.CREATED_AT: Product.created_at,
}


class CatalogService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _categories(self):
        return apply_tenant_filter(self.db.query(Category), Category, self.tenant_id)

    def _products(self):
        return apply_tenant_filter(self.db.query(Product), Product, self.tenant_id)

    # ========== Categories ==========

    def list_categories(self, include_inactive: bool = True) -> List[Category]:
        query = self._categories()
        if not include_inactive:
            query = query.filter(Category.is_active.is_(True))
        return query.order_by(Category.order_index, Category.name).all()

    def categories_with_products(self, available_only: bool = False) -> List[dict]:
        """Active categories, each with its products in menu order."""
        categories = self.list_categories(include_inactive=False)
        query = self._products().options(selectinload(Product.customizations))
        if available_only:
            query = query.filter(Product.is_available.is_(True))
        products = query.order_by(Product.order_index, Product.name).all()

        by_category = {}
        for product in products:
            by_category.setdefault(product.category_id, []).append(product)
        return [
            {"category": category, "products": by_category.get(category.id, [])}
            for category in categories
        ]

    def get_category(self, category_id: int) -> Category:
        category = self._categories().filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    def create_category(self, data: CategoryCreate) -> Category:
        category = Category(tenant_id=self.tenant_id, **data.model_dump())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Tenant {self.tenant_id} created category {category.id}")
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self.get_category(category_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        product_count = (
            self._products().filter(Product.category_id == category.id).count()
        )
        if product_count:
            raise ConflictError(
                f"Category {category_id} still has {product_count} products",
                details={"products": product_count},
            )
        self.db.delete(category)
        self.db.commit()
        logger.info(f"Tenant {self.tenant_id} deleted category {category_id}")

    # ========== Products ==========

    def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        is_available: Optional[bool] = None,
        sort_by: ProductSortField = ProductSortField.ORDER_INDEX,
        sort_order: SortOrder = SortOrder.ASC,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Product], PaginationMeta]:
        query = self._products().options(selectinload(Product.customizations))

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Product.name).like(pattern),
                    func.lower(Product.description).like(pattern),
                )
            )
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if is_available is not None:
            query = query.filter(Product.is_available.is_(is_available))

        column = PRODUCT_SORT_COLUMNS[sort_by]
        ordering = column.asc() if sort_order == SortOrder.ASC else column.desc()
        query = query.order_by(ordering, Product.id.asc())

        return paginate(query, page, limit)

    def get_product(self, product_id: int) -> Product:
        product = self._products().filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def _require_category(self, category_id: int) -> Category:
        category = self._categories().filter(Category.id == category_id).first()
        if not category:
            raise ValidationError(
                f"Category {category_id} does not exist for this tenant",
                error="Invalid category",
            )
        return category

    def create_product(self, data: ProductCreate) -> Product:
        self._require_category(data.category_id)
        BillingService(self.db).ensure_within_limit(self.tenant_id, "products")

        values = data.model_dump(exclude={"customizations"})
        product = Product(tenant_id=self.tenant_id, **values)
        for item in data.customizations:
            product.customizations.append(
                ProductCustomization(
                    tenant_id=self.tenant_id,
                    name=item.name,
                    type=item.type.value,
                    price=item.price,
                    is_available=item.is_available,
                )
            )
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Tenant {self.tenant_id} created product {product.id}")
        return product

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("category_id") is not None:
            self._require_category(changes["category_id"])
        for field, value in changes.items():
            if value is None and field in ("category_id", "name", "price"):
                continue
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> None:
        product = self.get_product(product_id)
        self.db.delete(product)
        self.db.commit()
        logger.info(f"Tenant {self.tenant_id} deleted product {product_id}")

    def toggle_availability(self, product_id: int) -> Product:
        product = self.get_product(product_id)
        product.is_available = not product.is_available
        self.db.commit()
        self.db.refresh(product)
        logger.info(
            f"Tenant {self.tenant_id} product {product_id} "
            f"is_available={product.is_available}"
        )
        return product

    # ========== Customizations ==========

    def list_customizations(self, product_id: int) -> List[ProductCustomization]:
        return list(self.get_product(product_id).customizations)

    def add_customization(
        self, product_id: int, data: CustomizationCreate
    ) -> ProductCustomization:
        product = self.get_product(product_id)
        customization = ProductCustomization(
            tenant_id=self.tenant_id,
            product_id=product.id,
            name=data.name,
            type=data.type.value,
            price=data.price,
            is_available=data.is_available,
        )
        self.db.add(customization)
        self.db.commit()
        self.db.refresh(customization)
        return customization

    def delete_customization(self, product_id: int, customization_id: int) -> None:
        product = self.get_product(product_id)
        customization = (
            self.db.query(ProductCustomization)
            .filter(
                ProductCustomization.id == customization_id,
                ProductCustomization.product_id == product.id,
                ProductCustomization.tenant_id == self.tenant_id,
            )
            .first()
        )
        if not customization:
            raise NotFoundError("Customization", customization_id)
        self.db.delete(customization)
        self.db.commit()
