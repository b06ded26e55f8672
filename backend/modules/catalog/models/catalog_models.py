from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin
from ..enums.catalog_enums import CustomizationType


class Category(Base, TimestampMixin, TenantMixin):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    tenant = relationship("Tenant", back_populates="categories")
    products = relationship("Product", back_populates="category")


class Product(Base, TimestampMixin, TenantMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(
        Integer, ForeignKey("categories.id"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    order_index = Column(Integer, nullable=False, default=0)
    preparation_time = Column(Integer, nullable=True)  # minutes

    tenant = relationship("Tenant", back_populates="products")
    category = relationship("Category", back_populates="products")
    customizations = relationship(
        "ProductCustomization",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductCustomization.id",
    )


class ProductCustomization(Base, TimestampMixin, TenantMixin):
    __tablename__ = "product_customizations"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False, default=CustomizationType.ADDITION.value)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_available = Column(Boolean, nullable=False, default=True)

    product = relationship("Product", back_populates="customizations")
