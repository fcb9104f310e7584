"""List pages and form fields shown by the console."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from core.entity_forms import FORMS, FormSchema
from core.list_pages import SCHEMAS
from core.query_codec import QuerySchema


def _flag(value: Any) -> str:
    return "yes" if value else "no"


def _money(value: Any) -> str:
    if value is None or value == "":
        return "-"
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return str(value)


def _stamp(value: Any) -> str:
    if not value:
        return "-"
    return str(value).replace("T", " ")[:16]


def _related_title(key: str) -> Callable[[Mapping[str, Any]], str]:
    def render(row: Mapping[str, Any]) -> str:
        related = row.get(key)
        if isinstance(related, Mapping):
            return str(related.get("title", ""))
        return ""

    return render


def _promo_scope(row: Mapping[str, Any]) -> str:
    scope = row.get("scopeType") or "all"
    if scope == "all":
        return "All products"
    target = _related_title(scope)(row)
    return f"{scope.capitalize()}: {target}" if target else scope.capitalize()


def _field(key: str) -> Callable[[Mapping[str, Any]], str]:
    def render(row: Mapping[str, Any]) -> str:
        value = row.get(key)
        return "" if value is None else str(value)

    return render


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    width: int
    render: Callable[[Mapping[str, Any]], str]


@dataclass(frozen=True)
class FilterControl:
    """A Select bound to one filter. ``lookup`` names a lookup list for options."""

    name: str
    label: str
    options: Tuple[Tuple[str, Any], ...] = ()
    lookup: Optional[str] = None


@dataclass(frozen=True)
class FieldControl:
    """Widget for one form field: text, textarea, select or switch."""

    name: str
    label: str
    kind: str = "text"
    options: Tuple[Tuple[str, Any], ...] = ()
    lookup: Optional[str] = None


@dataclass(frozen=True)
class PageDef:
    name: str
    title: str
    columns: Tuple[Column, ...]
    filters: Tuple[FilterControl, ...] = ()
    sort_labels: Tuple[Tuple[str, str], ...] = ()
    form_fields: Tuple[FieldControl, ...] = ()

    @property
    def path(self) -> str:
        return f"/{self.name}"

    @property
    def schema(self) -> QuerySchema:
        return SCHEMAS[self.name]

    @property
    def form(self) -> Optional[FormSchema]:
        return FORMS.get(self.name)


STATUS = FilterControl("status", "Status", (("Any status", ""), ("Active", "active"), ("Inactive", "inactive")))
SECTION_FILTER = FilterControl("sectionId", "Section", lookup="sections")
CATEGORY_FILTER = FilterControl("categoryId", "Category", lookup="categories")
CREATED = ("createdAt", "Created")

TITLE = FieldControl("title", "Title")
DESCRIPTION = FieldControl("description", "Description", kind="textarea")
ACTIVE = FieldControl("isActive", "Active", kind="switch")

PAGES: Tuple[PageDef, ...] = (
    PageDef(
        name="sections",
        title="Sections",
        columns=(
            Column("id", "ID", 6, _field("id")),
            Column("title", "Title", 28, _field("title")),
            Column("slug", "Slug", 22, _field("slug")),
            Column("isActive", "Active", 8, lambda row: _flag(row.get("isActive"))),
            Column("categoriesCount", "Categories", 10, _field("categoriesCount")),
        ),
        filters=(STATUS,),
        sort_labels=(CREATED, ("title", "Title")),
        form_fields=(TITLE, DESCRIPTION, ACTIVE),
    ),
    PageDef(
        name="categories",
        title="Categories",
        columns=(
            Column("id", "ID", 6, _field("id")),
            Column("title", "Title", 28, _field("title")),
            Column("sectionId", "Section", 10, _field("sectionId")),
            Column("isActive", "Active", 8, lambda row: _flag(row.get("isActive"))),
            Column("productsCount", "Products", 10, _field("productsCount")),
        ),
        filters=(SECTION_FILTER, STATUS),
        sort_labels=(CREATED, ("title", "Title")),
        form_fields=(TITLE, DESCRIPTION, FieldControl("sectionId", "Section", kind="select", lookup="sections"), ACTIVE),
    ),
    PageDef(
        name="products",
        title="Products",
        columns=(
            Column("id", "ID", 6, _field("id")),
            Column("title", "Title", 28, _field("title")),
            Column("price", "Price", 10, lambda row: _money(row.get("price"))),
            Column("discountPrice", "Discount", 10, lambda row: _money(row.get("discountPrice"))),
            Column("isActive", "Active", 8, lambda row: _flag(row.get("isActive"))),
            Column("createdAt", "Created", 17, lambda row: _stamp(row.get("createdAt"))),
        ),
        filters=(SECTION_FILTER, CATEGORY_FILTER, STATUS),
        sort_labels=(CREATED, ("price", "Price"), ("title", "Title")),
        form_fields=(
            TITLE,
            DESCRIPTION,
            FieldControl("price", "Price"),
            FieldControl("discountPrice", "Discount price"),
            FieldControl("categoryId", "Category", kind="select", lookup="categories"),
            ACTIVE,
        ),
    ),
    PageDef(
        name="promocodes",
        title="Promo codes",
        columns=(
            Column("code", "Code", 14, _field("code")),
            Column("scope", "Scope", 24, _promo_scope),
            Column("discountPercent", "Discount %", 10, _field("discountPercent")),
            Column("isActive", "Active", 8, lambda row: _flag(row.get("isActive"))),
            Column("expiresAt", "Expires", 17, lambda row: _stamp(row.get("expiresAt"))),
        ),
        filters=(
            FilterControl(
                "scope",
                "Scope",
                (
                    ("Any scope", ""),
                    ("All products", "all"),
                    ("Section", "section"),
                    ("Category", "category"),
                    ("Product", "product"),
                ),
            ),
            STATUS,
            FilterControl("expired", "Expiry", (("Any expiry", ""), ("Expired", "1"), ("Not expired", "0"))),
        ),
        sort_labels=(CREATED, ("expiresAt", "Expires"), ("code", "Code")),
        form_fields=(
            FieldControl("code", "Code"),
            DESCRIPTION,
            FieldControl(
                "scopeType",
                "Scope type",
                kind="select",
                options=(("All products", "all"), ("Section", "section"), ("Category", "category"), ("Product", "product")),
            ),
            FieldControl("sectionId", "Section", kind="select", lookup="sections"),
            FieldControl("categoryId", "Category", kind="select", lookup="categories"),
            FieldControl("productId", "Product", kind="select", lookup="products"),
            FieldControl("discountPercent", "Discount (%)"),
            FieldControl("startsAt", "Starts at (YYYY-MM-DDTHH:MM)"),
            FieldControl("expiresAt", "Expires at (YYYY-MM-DDTHH:MM)"),
            ACTIVE,
        ),
    ),
    PageDef(
        name="users",
        title="Users",
        columns=(
            Column("name", "Name", 24, lambda row: f"{row.get('name', '')} {row.get('surname', '')}".strip()),
            Column("email", "Email", 28, _field("email")),
            Column("roles", "Roles", 20, lambda row: ", ".join(row.get("roles") or [])),
            Column("isVerified", "Verified", 9, lambda row: _flag(row.get("isVerified"))),
            Column("verifiedAt", "Verified at", 17, lambda row: _stamp(row.get("verifiedAt"))),
        ),
        filters=(
            FilterControl(
                "verified",
                "Verified",
                (("Any", ""), ("Verified", "verified"), ("Not verified", "not-verified")),
            ),
            FilterControl("role", "Role", (("Any role", ""), ("User", "ROLE_USER"), ("Admin", "ROLE_ADMIN"))),
        ),
        sort_labels=(CREATED, ("verifiedAt", "Verified at")),
    ),
)

PAGES_BY_PATH: Dict[str, PageDef] = {page.path: page for page in PAGES}

# Lookup lists feeding select options: resource name -> label renderer.
LOOKUPS: Dict[str, Callable[[Mapping[str, Any]], str]] = {
    "sections": _field("title"),
    "categories": _field("title"),
    "products": _field("title"),
}
