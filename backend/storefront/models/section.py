"""Homepage campaign section model."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from storefront.db.base import Base
from storefront.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class Section(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "sections"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(10), default="image", nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    heading: Mapped[str | None] = mapped_column(String(255))
    subheading: Mapped[str | None] = mapped_column(String(500))
    media_url: Mapped[str] = mapped_column(String(500), nullable=False)
    link: Mapped[str | None] = mapped_column(String(500))

    # Featured product ids as strings, in display order
    product_ids: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)

    def __repr__(self) -> str:
        return f"<Section {self.order}: {self.title}>"
