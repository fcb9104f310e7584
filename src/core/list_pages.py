"""Query schemas of the console's list pages."""

from __future__ import annotations

from typing import Dict

from core.models import SortSpec
from core.query_codec import FilterSpec, QuerySchema

STATUS_FILTER = FilterSpec(
    "status",
    kind="enum",
    default="",
    choices=("", "active", "inactive"),
    wire_name="isActive",
    wire_values={"active": 1, "inactive": 0},
)

SECTIONS = QuerySchema(
    filters=(STATUS_FILTER,),
    sort_fields=("createdAt", "title"),
    default_sort=SortSpec("createdAt", "desc"),
)

CATEGORIES = QuerySchema(
    filters=(
        FilterSpec("sectionId", kind="integer", minimum=1),
        STATUS_FILTER,
    ),
    sort_fields=("createdAt", "title"),
    default_sort=SortSpec("createdAt", "desc"),
)

PRODUCTS = QuerySchema(
    filters=(
        FilterSpec("sectionId", kind="integer", minimum=1),
        FilterSpec("categoryId", kind="integer", minimum=1),
        STATUS_FILTER,
    ),
    sort_fields=("createdAt", "price", "title"),
    default_sort=SortSpec("createdAt", "desc"),
)

PROMO_CODES = QuerySchema(
    filters=(
        FilterSpec(
            "scope",
            kind="enum",
            default="",
            choices=("", "all", "section", "category", "product"),
            wire_name="scopeType",
        ),
        STATUS_FILTER,
        FilterSpec("expired", kind="boolean", wire_name="isExpired"),
    ),
    sort_fields=("createdAt", "expiresAt", "code"),
    default_sort=SortSpec("createdAt", "desc"),
)

USERS = QuerySchema(
    filters=(
        FilterSpec(
            "verified",
            kind="enum",
            default="",
            choices=("", "verified", "not-verified"),
            wire_name="isVerified",
            wire_values={"verified": 1, "not-verified": 0},
        ),
        FilterSpec("role", kind="enum", default="", choices=("", "ROLE_USER", "ROLE_ADMIN")),
    ),
    sort_fields=("createdAt", "verifiedAt"),
    default_sort=SortSpec("createdAt", "desc"),
    search_param="q",
)

SCHEMAS: Dict[str, QuerySchema] = {
    "sections": SECTIONS,
    "categories": CATEGORIES,
    "products": PRODUCTS,
    "promocodes": PROMO_CODES,
    "users": USERS,
}
