"""Form schemas for the entities edited in the console.

Each schema knows its field names, the values a "create" dialog starts
from, how to derive values from an existing entity, a pure validator and the
payload sent to the create/update endpoint.
"""

from __future__ import annotations

import copy
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from core.models import FieldErrors

TITLE_MAX = 255
DESCRIPTION_MAX = 5000
CODE_MIN = 2
CODE_MAX = 64
PROMO_SCOPES = ("all", "section", "category", "product")


def parse_decimal(raw: Any) -> Optional[Decimal]:
    """Parse a numeric input, accepting a decimal comma. None if invalid."""

    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip().replace(",", ".")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_datetime_input(raw: Any) -> Optional[datetime]:
    text = str(raw or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_input_datetime(raw: Any) -> str:
    """Format an API timestamp as a ``YYYY-MM-DDTHH:MM`` input value."""

    parsed = parse_datetime_input(raw)
    if parsed is None:
        return ""
    return parsed.strftime("%Y-%m-%dT%H:%M")


def _text(values: Mapping[str, Any], name: str) -> str:
    value = values.get(name)
    return "" if value is None else str(value)


def _put(errors: FieldErrors, name: str, message: str) -> None:
    errors.setdefault(name, []).append(message)


def _check_title(errors: FieldErrors, values: Mapping[str, Any]) -> None:
    title = _text(values, "title").strip()
    if not title:
        _put(errors, "title", "Title is required.")
    elif len(title) > TITLE_MAX:
        _put(errors, "title", f"Title must not be longer than {TITLE_MAX} characters.")


def _check_description(errors: FieldErrors, values: Mapping[str, Any]) -> None:
    if len(_text(values, "description")) > DESCRIPTION_MAX:
        _put(errors, "description", f"Description must not be longer than {DESCRIPTION_MAX} characters.")


class FormSchema:
    """Base form schema. Subclasses declare fields and validation."""

    entity: str = ""
    fields: Tuple[str, ...] = ()
    composite_field: Optional[str] = None
    _defaults: Dict[str, Any] = {}

    def defaults(self) -> Dict[str, Any]:
        return copy.deepcopy(self._defaults)

    def from_entity(self, entity: Mapping[str, Any]) -> Dict[str, Any]:
        values = self.defaults()
        for name in self.fields:
            if entity.get(name) is not None:
                values[name] = entity[name]
        return values

    def validate(self, values: Mapping[str, Any]) -> FieldErrors:
        return {}

    def to_payload(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: values.get(name) for name in self.fields}


class SectionForm(FormSchema):
    entity = "section"
    fields = ("title", "description", "isActive")
    _defaults = {"title": "", "description": "", "isActive": True}

    def validate(self, values: Mapping[str, Any]) -> FieldErrors:
        errors: FieldErrors = {}
        _check_title(errors, values)
        _check_description(errors, values)
        return errors

    def to_payload(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "title": _text(values, "title").strip(),
            "description": _text(values, "description") or None,
            "isActive": bool(values.get("isActive")),
        }


class CategoryForm(FormSchema):
    entity = "category"
    fields = ("title", "description", "sectionId", "isActive")
    _defaults = {"title": "", "description": "", "sectionId": None, "isActive": True}

    def validate(self, values: Mapping[str, Any]) -> FieldErrors:
        errors: FieldErrors = {}
        _check_title(errors, values)
        _check_description(errors, values)
        if not values.get("sectionId"):
            _put(errors, "sectionId", "Section is required.")
        return errors

    def to_payload(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "title": _text(values, "title").strip(),
            "description": _text(values, "description") or None,
            "sectionId": int(values["sectionId"]) if values.get("sectionId") else None,
            "isActive": bool(values.get("isActive")),
        }


class ProductForm(FormSchema):
    entity = "product"
    fields = ("title", "description", "price", "discountPrice", "categoryId", "isActive", "images")
    composite_field = "images"
    _defaults = {
        "title": "",
        "description": "",
        "price": "",
        "discountPrice": "",
        "categoryId": None,
        "isActive": True,
        "images": [],
    }

    def from_entity(self, entity: Mapping[str, Any]) -> Dict[str, Any]:
        values = super().from_entity(entity)
        # Numeric inputs are edited as text.
        values["price"] = "" if entity.get("price") is None else str(entity["price"])
        discount = entity.get("discountPrice")
        values["discountPrice"] = "" if discount is None else str(discount)
        values["images"] = list(entity.get("images") or [])
        return values

    def validate(self, values: Mapping[str, Any]) -> FieldErrors:
        errors: FieldErrors = {}
        _check_title(errors, values)
        _check_description(errors, values)

        price_raw = _text(values, "price").strip()
        price = parse_decimal(price_raw)
        if not price_raw:
            _put(errors, "price", "Price is required.")
        elif price is None:
            _put(errors, "price", "Price must be a number.")
        elif price < 0:
            _put(errors, "price", "Price must not be negative.")

        discount_raw = _text(values, "discountPrice").strip()
        if discount_raw:
            discount = parse_decimal(discount_raw)
            if discount is None:
                _put(errors, "discountPrice", "Discount price must be a number.")
            elif discount < 0:
                _put(errors, "discountPrice", "Discount price must not be negative.")
            elif price is not None and discount >= price:
                _put(errors, "discountPrice", "Discount price must be lower than price.")

        if not values.get("categoryId"):
            _put(errors, "categoryId", "Category is required.")
        return errors

    def to_payload(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        price = parse_decimal(values.get("price"))
        discount = parse_decimal(values.get("discountPrice"))
        images = list(values.get("images") or [])
        return {
            "title": _text(values, "title").strip(),
            "description": _text(values, "description") or None,
            "price": str(price) if price is not None else None,
            "discountPrice": str(discount) if discount is not None else None,
            "categoryId": int(values["categoryId"]) if values.get("categoryId") else None,
            "isActive": bool(values.get("isActive")),
            "images": images or None,
        }


class PromoCodeForm(FormSchema):
    entity = "promo code"
    fields = (
        "code",
        "description",
        "scopeType",
        "discountPercent",
        "isActive",
        "startsAt",
        "expiresAt",
        "sectionId",
        "categoryId",
        "productId",
    )
    _defaults = {
        "code": "",
        "description": "",
        "scopeType": "all",
        "discountPercent": "",
        "isActive": True,
        "startsAt": "",
        "expiresAt": "",
        "sectionId": None,
        "categoryId": None,
        "productId": None,
    }

    _SCOPE_TARGETS = {"section": "sectionId", "category": "categoryId", "product": "productId"}

    def from_entity(self, entity: Mapping[str, Any]) -> Dict[str, Any]:
        values = self.defaults()
        values["code"] = entity.get("code") or ""
        values["description"] = entity.get("description") or ""
        values["scopeType"] = entity.get("scopeType") or "all"
        percent = entity.get("discountPercent")
        values["discountPercent"] = "" if percent is None else str(percent)
        values["isActive"] = bool(entity.get("isActive", True))
        values["startsAt"] = to_input_datetime(entity.get("startsAt"))
        values["expiresAt"] = to_input_datetime(entity.get("expiresAt"))
        # The API nests targets as {"id", "title"} objects.
        for scope, field_name in self._SCOPE_TARGETS.items():
            related = entity.get(scope)
            if isinstance(related, Mapping):
                values[field_name] = related.get("id")
        return values

    def validate(self, values: Mapping[str, Any]) -> FieldErrors:
        errors: FieldErrors = {}

        code = _text(values, "code").strip()
        if not code:
            _put(errors, "code", "Code is required.")
        elif len(code) < CODE_MIN:
            _put(errors, "code", f"Code must be at least {CODE_MIN} characters long.")
        elif len(code) > CODE_MAX:
            _put(errors, "code", f"Code must not be longer than {CODE_MAX} characters.")

        _check_description(errors, values)

        percent_raw = _text(values, "discountPercent").strip()
        if not percent_raw:
            _put(errors, "discountPercent", "Discount percent is required.")
        else:
            percent = parse_decimal(percent_raw)
            if percent is None:
                _put(errors, "discountPercent", "Discount percent must be a number.")
            elif percent < 0 or percent > 100:
                _put(errors, "discountPercent", "Discount percent must be between 0 and 100.")

        scope = values.get("scopeType")
        if not scope:
            _put(errors, "scopeType", "Scope type is required.")
        elif scope not in PROMO_SCOPES:
            _put(errors, "scopeType", "Scope type is invalid.")
        elif scope in self._SCOPE_TARGETS and not values.get(self._SCOPE_TARGETS[scope]):
            _put(errors, "scopeType", f"{scope.capitalize()} is required for this scope.")

        starts = parse_datetime_input(values.get("startsAt"))
        expires = parse_datetime_input(values.get("expiresAt"))
        if starts is not None and expires is not None and _naive(expires) < _naive(starts):
            _put(errors, "expiresAt", "Expires at must be after or equal to Starts at.")
        return errors

    def to_payload(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        percent = parse_decimal(values.get("discountPercent"))
        scope = values.get("scopeType") or "all"
        payload: Dict[str, Any] = {
            "code": _text(values, "code").strip(),
            "description": _text(values, "description") or None,
            "scopeType": scope,
            "discountPercent": float(percent) if percent is not None else None,
            "isActive": bool(values.get("isActive")),
            "startsAt": _text(values, "startsAt") or None,
            "expiresAt": _text(values, "expiresAt") or None,
            "sectionId": None,
            "categoryId": None,
            "productId": None,
        }
        # Only the target matching the scope is sent.
        target = self._SCOPE_TARGETS.get(scope)
        if target and values.get(target):
            payload[target] = int(values[target])
        return payload


def _naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


FORMS: Dict[str, FormSchema] = {
    "sections": SectionForm(),
    "categories": CategoryForm(),
    "products": ProductForm(),
    "promocodes": PromoCodeForm(),
}
