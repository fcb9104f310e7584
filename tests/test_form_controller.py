from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import pytest

from core.config import FormConfig
from core.entity_forms import ProductForm, SectionForm
from core.errors import NetworkFailure, ServerFailure, ValidationFailure
from core.form_controller import FormState, ValidatedFormController
from core.scheduler import ManualScheduler

PRODUCT = {
    "id": 7,
    "title": "Runner",
    "description": "Light shoe",
    "price": 10,
    "discountPrice": None,
    "categoryId": 3,
    "isActive": True,
    "images": [],
}


class FakeSave:
    def __init__(self, result: Any = None, error: Optional[BaseException] = None) -> None:
        self.result = result
        self.error = error
        self.payloads: list[dict] = []

    async def __call__(self, payload: dict) -> Any:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.result


def _product_controller(
    save: Optional[FakeSave] = None,
    on_change: Optional[Callable[[], Any]] = None,
) -> tuple[ValidatedFormController, FakeSave, ManualScheduler]:
    schema = ProductForm()
    save = save or FakeSave(result={**PRODUCT})
    scheduler = ManualScheduler()
    controller = ValidatedFormController(schema, save, scheduler, FormConfig(validation_delay=0.3), on_change)
    controller.open(schema.from_entity(PRODUCT))
    return controller, save, scheduler


def test_open_captures_snapshot_and_starts_clean() -> None:
    controller, _, _ = _product_controller()

    assert controller.is_open
    assert controller.values["price"] == "10"
    assert controller.values["discountPrice"] == ""
    assert controller.state is FormState.CLEAN
    assert controller.errors == {}
    assert controller.touched == frozenset()


def test_cannot_submit_without_changes() -> None:
    controller, save, _ = _product_controller()

    assert controller.validate(controller.values) == {}
    assert not controller.can_submit
    assert asyncio.run(controller.submit()) is False
    assert save.payloads == []


def test_reverting_an_edit_makes_the_form_clean_again() -> None:
    controller, _, _ = _product_controller()

    controller.set_field_value("title", "Runner 2")
    assert controller.dirty
    controller.set_field_value("title", "Runner")
    assert not controller.dirty
    assert not controller.can_submit


def test_discount_error_shows_only_after_blur() -> None:
    controller, _, scheduler = _product_controller()

    controller.set_field_value("discountPrice", "15")
    assert controller.state is FormState.VALIDATING
    scheduler.advance(0.5)

    assert controller.state is FormState.CLEAN
    assert controller.errors == {}
    assert controller.validate(controller.values) == {
        "discountPrice": ["Discount price must be lower than price."]
    }
    assert not controller.can_submit

    controller.blur_field("discountPrice")

    assert controller.errors == {"discountPrice": ["Discount price must be lower than price."]}


def test_discount_error_shows_after_submit_attempt() -> None:
    controller, save, scheduler = _product_controller()

    controller.set_field_value("discountPrice", "15")
    assert asyncio.run(controller.submit()) is False

    assert controller.errors == {"discountPrice": ["Discount price must be lower than price."]}
    assert save.payloads == []
    scheduler.advance(1)
    assert scheduler.pending == 0


def test_invalid_submit_touches_every_field() -> None:
    schema = ProductForm()
    save = FakeSave()
    controller = ValidatedFormController(schema, save, ManualScheduler())
    controller.open()
    controller.set_field_value("title", "Boot")

    assert asyncio.run(controller.submit()) is False

    assert controller.touched == frozenset(schema.fields)
    assert controller.errors == {
        "price": ["Price is required."],
        "categoryId": ["Category is required."],
    }
    assert save.payloads == []


def test_debounced_validation_writes_only_touched_fields() -> None:
    controller, _, scheduler = _product_controller()

    controller.blur_field("title")
    controller.set_field_value("title", "")
    controller.set_field_value("price", "abc")
    assert controller.errors == {}

    scheduler.advance(0.4)

    assert controller.errors == {"title": ["Title is required."]}
    controller.blur_field("price")
    assert controller.errors["price"] == ["Price must be a number."]


def test_each_keystroke_restarts_validation_delay() -> None:
    controller, _, scheduler = _product_controller()
    controller.blur_field("title")

    controller.set_field_value("title", "")
    scheduler.advance(0.2)
    controller.set_field_value("title", "R")
    scheduler.advance(0.2)

    assert controller.state is FormState.VALIDATING
    scheduler.advance(0.2)
    assert controller.state is FormState.CLEAN
    assert controller.errors == {}


def test_successful_submit_sends_payload_and_returns_to_clean() -> None:
    changes: list[FormState] = []
    saved_entity = {**PRODUCT, "discountPrice": "7.5"}
    save = FakeSave(result=saved_entity)
    controller, _, _ = _product_controller(save, lambda: changes.append(controller.state))

    controller.set_field_value("discountPrice", "7,5")
    assert controller.can_submit
    assert asyncio.run(controller.submit()) is True

    assert save.payloads == [
        {
            "title": "Runner",
            "description": "Light shoe",
            "price": "10",
            "discountPrice": "7.5",
            "categoryId": 3,
            "isActive": True,
            "images": None,
        }
    ]
    assert controller.saved == saved_entity
    assert controller.state is FormState.CLEAN
    assert changes == [FormState.SUBMITTING, FormState.CLEAN]


def test_save_returning_no_body_still_succeeds() -> None:
    controller, _, _ = _product_controller(FakeSave(result=None))
    controller.set_field_value("title", "Runner 2")

    assert asyncio.run(controller.submit()) is True
    assert controller.saved is None


def test_validation_failure_is_distributed_onto_fields() -> None:
    failure = ValidationFailure(
        {
            "message": "Validation failed",
            "errors": {
                "title": ["This title is already used."],
                "images[0].url": "Image URL is invalid.",
                "sku": ["Unknown field."],
            },
        }
    )
    controller, _, _ = _product_controller(FakeSave(error=failure))
    controller.set_field_value("title", "Runner 2")

    assert asyncio.run(controller.submit()) is False

    assert controller.state is FormState.SUBMIT_FAILED
    assert controller.errors == {
        "title": ["This title is already used."],
        "images": ["Image URL is invalid."],
        "global": ["Unknown field."],
    }
    assert controller.values["title"] == "Runner 2"
    assert controller.is_open


def test_server_failure_becomes_global_error_and_keeps_values() -> None:
    controller, _, _ = _product_controller(FakeSave(error=ServerFailure(status=500, payload={"error": "Database down"})))
    controller.set_field_value("price", "12")

    assert asyncio.run(controller.submit()) is False

    assert controller.errors == {"global": ["Database down"]}
    assert controller.values["price"] == "12"
    assert controller.state is FormState.SUBMIT_FAILED


def test_network_failure_then_retry_succeeds() -> None:
    save = FakeSave(error=NetworkFailure())
    controller, _, _ = _product_controller(save)
    controller.set_field_value("price", "12")

    assert asyncio.run(controller.submit()) is False
    assert controller.errors["global"] == [NetworkFailure.default_message]

    save.error = None
    save.result = {**PRODUCT, "price": "12"}
    assert asyncio.run(controller.submit()) is True
    assert "global" not in controller.errors
    assert len(save.payloads) == 2


def test_unexpected_exception_is_reported_generically() -> None:
    controller, _, _ = _product_controller(FakeSave(error=KeyError("id")))
    controller.set_field_value("price", "12")

    assert asyncio.run(controller.submit()) is False
    assert controller.errors == {"global": ["Unexpected error. Please try again later."]}


def test_result_after_close_is_ignored() -> None:
    async def scenario() -> tuple[bool, ValidatedFormController]:
        gate = asyncio.Event()

        async def save(payload: dict) -> Any:
            await gate.wait()
            return {"id": 1}

        controller = ValidatedFormController(SectionForm(), save, ManualScheduler())
        controller.open()
        controller.set_field_value("title", "Shoes")
        task = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        assert controller.state is FormState.SUBMITTING
        assert not controller.can_submit

        controller.close()
        gate.set()
        return await task, controller

    result, controller = asyncio.run(scenario())

    assert result is False
    assert controller.saved is None
    assert not controller.is_open


def test_cancelled_submit_leaves_form_resubmittable() -> None:
    async def scenario() -> ValidatedFormController:
        async def save(payload: dict) -> Any:
            await asyncio.Event().wait()

        controller = ValidatedFormController(SectionForm(), save, ManualScheduler())
        controller.open()
        controller.set_field_value("title", "Shoes")
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(controller.submit(), 0.01)
        return controller

    controller = asyncio.run(scenario())

    assert controller.state is FormState.CLEAN
    assert controller.can_submit
    assert controller.values["title"] == "Shoes"


def test_cancelled_retry_keeps_failed_state() -> None:
    async def scenario() -> ValidatedFormController:
        calls = []

        async def save(payload: dict) -> Any:
            calls.append(payload)
            if len(calls) == 1:
                raise NetworkFailure()
            await asyncio.Event().wait()

        controller = ValidatedFormController(SectionForm(), save, ManualScheduler())
        controller.open()
        controller.set_field_value("title", "Shoes")
        assert await controller.submit() is False
        task = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return controller

    controller = asyncio.run(scenario())

    assert controller.state is FormState.SUBMIT_FAILED
    assert controller.can_submit


def test_reopen_resets_touched_and_errors() -> None:
    controller, _, scheduler = _product_controller()
    controller.set_field_value("title", "")
    controller.blur_field("title")
    assert controller.errors

    controller.open(ProductForm().from_entity(PRODUCT))
    scheduler.advance(1)

    assert controller.errors == {}
    assert controller.touched == frozenset()
    assert not controller.dirty


def test_unknown_field_is_rejected() -> None:
    controller, _, _ = _product_controller()

    with pytest.raises(ValueError):
        controller.set_field_value("sku", "X1")


def test_closed_form_has_no_values() -> None:
    controller = ValidatedFormController(SectionForm(), FakeSave(), ManualScheduler())

    assert not controller.is_open
    assert not controller.can_submit
    with pytest.raises(RuntimeError):
        _ = controller.values
