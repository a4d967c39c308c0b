"""Product, tag, size guide and review models."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, SmallInteger, String, Table, Text, func,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base
from storefront.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


product_tags = Table(
    "product_tags",
    Base.metadata,
    Column("product_id", UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", UUID(as_uuid=True), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    color: Mapped[str | None] = mapped_column(String(20))

    products = relationship("Product", secondary=product_tags, back_populates="tags", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Tag {self.slug}>"


class SizeGuide(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "size_guides"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[str | None] = mapped_column(String(500))


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    barcode: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    sale_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    sale_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Equals sum(variants[*].stock) whenever variants is non-empty
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    variants: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)
    images: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id"), nullable=False, index=True
    )
    size_guide_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("size_guides.id", ondelete="SET NULL")
    )

    # Relationships
    category = relationship("Category", back_populates="products", lazy="selectin")
    size_guide = relationship("SizeGuide", lazy="selectin")
    tags = relationship(
        "Tag", secondary=product_tags, back_populates="products", order_by="Tag.name", lazy="selectin"
    )
    reviews = relationship(
        "ProductReview",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductReview.created_at",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"


class ProductReview(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "product_reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_product_reviews_rating"),
    )

    reviewer: Mapped[str] = mapped_column(String(255), nullable=False)
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )

    product = relationship("Product", back_populates="reviews")
