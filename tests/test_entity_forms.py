from __future__ import annotations

from decimal import Decimal

from core.entity_forms import (
    FORMS,
    CategoryForm,
    ProductForm,
    PromoCodeForm,
    SectionForm,
    parse_decimal,
    to_input_datetime,
)


def _promo(**overrides) -> dict:
    values = PromoCodeForm().defaults()
    values.update({"code": "SPRING", "discountPercent": "15"})
    values.update(overrides)
    return values


def test_parse_decimal() -> None:
    assert parse_decimal("12,50") == Decimal("12.50")
    assert parse_decimal(" 3 ") == Decimal("3")
    assert parse_decimal("") is None
    assert parse_decimal("abc") is None
    assert parse_decimal("NaN") is None
    assert parse_decimal(True) is None


def test_to_input_datetime() -> None:
    assert to_input_datetime("2024-05-01T10:30:00+00:00") == "2024-05-01T10:30"
    assert to_input_datetime("2024-05-01T10:30:00Z") == "2024-05-01T10:30"
    assert to_input_datetime(None) == ""
    assert to_input_datetime("tomorrow") == ""


def test_defaults_are_independent_copies() -> None:
    form = ProductForm()
    first = form.defaults()
    first["images"].append("a.png")

    assert form.defaults()["images"] == []


def test_section_title_rules() -> None:
    form = SectionForm()

    assert form.validate({"title": "  "}) == {"title": ["Title is required."]}
    assert form.validate({"title": "x" * 256}) == {"title": ["Title must not be longer than 255 characters."]}
    assert form.validate({"title": "Shoes", "description": "d" * 5001}) == {
        "description": ["Description must not be longer than 5000 characters."]
    }
    assert form.to_payload({"title": " Shoes ", "description": "", "isActive": False}) == {
        "title": "Shoes",
        "description": None,
        "isActive": False,
    }


def test_category_requires_section() -> None:
    form = CategoryForm()
    values = form.defaults()
    values["title"] = "Sneakers"

    assert form.validate(values) == {"sectionId": ["Section is required."]}
    values["sectionId"] = 2
    assert form.validate(values) == {}
    assert form.to_payload(values)["sectionId"] == 2


def test_product_price_rules() -> None:
    form = ProductForm()
    base = {"title": "Runner", "categoryId": 1}

    assert form.validate({**base, "price": ""})["price"] == ["Price is required."]
    assert form.validate({**base, "price": "ten"})["price"] == ["Price must be a number."]
    assert form.validate({**base, "price": "-1"})["price"] == ["Price must not be negative."]
    assert form.validate({**base, "price": "10", "discountPrice": "x"})["discountPrice"] == [
        "Discount price must be a number."
    ]
    assert form.validate({**base, "price": "10", "discountPrice": "10"})["discountPrice"] == [
        "Discount price must be lower than price."
    ]
    assert form.validate({**base, "price": "10", "discountPrice": "9.99"}) == {}


def test_product_from_entity_edits_numbers_as_text() -> None:
    values = ProductForm().from_entity({"title": "Runner", "price": 12.5, "discountPrice": None, "categoryId": 4})

    assert values["price"] == "12.5"
    assert values["discountPrice"] == ""
    assert values["categoryId"] == 4
    assert values["isActive"] is True


def test_promo_code_length_and_percent() -> None:
    form = PromoCodeForm()

    assert form.validate(_promo()) == {}
    assert form.validate(_promo(code="A"))["code"] == ["Code must be at least 2 characters long."]
    assert form.validate(_promo(code="A" * 65))["code"] == ["Code must not be longer than 64 characters."]
    assert form.validate(_promo(discountPercent=""))["discountPercent"] == ["Discount percent is required."]
    assert form.validate(_promo(discountPercent="150"))["discountPercent"] == [
        "Discount percent must be between 0 and 100."
    ]


def test_promo_scope_needs_matching_target() -> None:
    form = PromoCodeForm()

    assert form.validate(_promo(scopeType="category")) == {
        "scopeType": ["Category is required for this scope."]
    }
    assert form.validate(_promo(scopeType="category", sectionId=3)) == {
        "scopeType": ["Category is required for this scope."]
    }
    assert form.validate(_promo(scopeType="category", categoryId=3)) == {}
    assert form.validate(_promo(scopeType="bogus")) == {"scopeType": ["Scope type is invalid."]}


def test_promo_dates_must_be_ordered() -> None:
    form = PromoCodeForm()

    errors = form.validate(_promo(startsAt="2024-06-01T00:00", expiresAt="2024-05-01T00:00"))
    assert errors == {"expiresAt": ["Expires at must be after or equal to Starts at."]}
    assert form.validate(_promo(startsAt="2024-06-01T00:00", expiresAt="2024-06-01T00:00")) == {}


def test_promo_payload_sends_only_scope_target() -> None:
    payload = PromoCodeForm().to_payload(
        _promo(scopeType="product", sectionId=1, categoryId=2, productId="9", discountPercent="12,5")
    )

    assert payload["productId"] == 9
    assert payload["sectionId"] is None
    assert payload["categoryId"] is None
    assert payload["discountPercent"] == 12.5
    assert payload["startsAt"] is None


def test_promo_from_entity_reads_nested_targets() -> None:
    values = PromoCodeForm().from_entity(
        {
            "code": "SUMMER",
            "scopeType": "section",
            "section": {"id": 5, "title": "Shoes"},
            "discountPercent": 20,
            "isActive": False,
            "expiresAt": "2024-08-31T23:59:00Z",
        }
    )

    assert values["sectionId"] == 5
    assert values["discountPercent"] == "20"
    assert values["isActive"] is False
    assert values["expiresAt"] == "2024-08-31T23:59"
    assert values["startsAt"] == ""


def test_every_form_field_is_known() -> None:
    for schema in FORMS.values():
        assert set(schema.defaults()) == set(schema.fields)
