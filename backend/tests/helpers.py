"""Plain stand-ins for ORM rows used across catalog tests."""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock
import uuid

CREATED = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)


def make_category(name, parent=None, **overrides):
    fields = dict(
        id=uuid.uuid4(),
        name=name,
        slug=name.lower().replace(" ", "-"),
        image=None,
        parent_id=parent.id if parent is not None else None,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_product(name="Linen Shirt", price="100.00", category=None, **overrides):
    fields = dict(
        id=uuid.uuid4(),
        name=name,
        slug=f"{name.lower().replace(' ', '-')}-1760000000000",
        sku=f"SKU-{uuid.uuid4().int % 900000 + 100000}",
        barcode=f"BAR-{uuid.uuid4().int % 900000 + 100000}",
        description=None,
        price=Decimal(price),
        discount_price=None,
        sale_start_date=None,
        sale_end_date=None,
        stock=0,
        variants=[],
        images=[],
        views=0,
        category_id=category.id if category is not None else uuid.uuid4(),
        category=None,
        size_guide=None,
        tags=[],
        reviews=[],
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def scalars_result(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(items)
    result.scalars.return_value.first.return_value = items[0] if items else None
    return result


def scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    return result
