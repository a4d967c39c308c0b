"""Category tree shaping, subtree resolution and offer evaluation."""

from storefront.catalog.tree import build_category_tree, flatten_category_tree, canonical_id
from storefront.catalog.descendants import (
    collect_descendants, resolve_descendants, family_ids, would_create_cycle,
)
from storefront.catalog.offers import (
    offer_expired, is_offer_active, effective_price, effective_price_expression,
    apply_offer_expiry, schedule_offer_clear,
)

__all__ = [
    "build_category_tree", "flatten_category_tree", "canonical_id",
    "collect_descendants", "resolve_descendants", "family_ids", "would_create_cycle",
    "offer_expired", "is_offer_active", "effective_price", "effective_price_expression",
    "apply_offer_expiry", "schedule_offer_clear",
]
