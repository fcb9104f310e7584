"""Validated form-dialog controller.

Errors are always computed for every field, but a field only shows its
errors once it was blurred or a submit was attempted. Submissions that
would not change anything are refused before they reach the network.
"""

from __future__ import annotations

import asyncio
import copy
from enum import Enum
import logging
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from core.config import FormConfig
from core.debounce import Debouncer
from core.entity_forms import FormSchema
from core.error_distributor import distribute
from core.errors import ValidationFailure, classify
from core.models import GLOBAL_ERROR_KEY, FieldErrors, FormSnapshot
from core.ports import SaveCallable, SchedulerPort

LOGGER = logging.getLogger(__name__)


class FormState(str, Enum):
    CLEAN = "clean"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUBMIT_FAILED = "submit_failed"


class ValidatedFormController:
    """Values, touched fields and errors of one open form dialog."""

    def __init__(
        self,
        schema: FormSchema,
        save: SaveCallable,
        scheduler: SchedulerPort,
        config: FormConfig = FormConfig(),
        on_change: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._schema = schema
        self._save = save
        self._config = config
        self._on_change = on_change
        self._debouncer: Debouncer[None] = Debouncer(scheduler, self._run_validation)
        self._snapshot: Optional[FormSnapshot] = None
        self._touched: set = set()
        self._errors: FieldErrors = {}
        self._session = 0
        self._failed = False
        self.saved: Any = None
        self.state = FormState.CLEAN

    @property
    def schema(self) -> FormSchema:
        return self._schema

    @property
    def is_open(self) -> bool:
        return self._snapshot is not None

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._require_snapshot().current)

    @property
    def initial(self) -> Dict[str, Any]:
        return dict(self._require_snapshot().initial)

    @property
    def touched(self) -> FrozenSet[str]:
        return frozenset(self._touched)

    @property
    def errors(self) -> FieldErrors:
        """Errors currently shown to the user."""

        return {name: list(messages) for name, messages in self._errors.items()}

    def field_errors(self, name: str) -> List[str]:
        return list(self._errors.get(name, []))

    @property
    def dirty(self) -> bool:
        return self._snapshot is not None and self._snapshot.dirty

    @property
    def can_submit(self) -> bool:
        if self._snapshot is None or self.state is FormState.SUBMITTING:
            return False
        return self.dirty and not self.validate(self._snapshot.current)

    def open(self, initial_values: Optional[Mapping[str, Any]] = None) -> None:
        """Start a dialog session from entity values or the create defaults."""

        self._debouncer.cancel()
        values = dict(initial_values) if initial_values is not None else self._schema.defaults()
        self._snapshot = FormSnapshot(initial=copy.deepcopy(values), current=copy.deepcopy(values))
        self._touched = set()
        self._errors = {}
        self._failed = False
        self.saved = None
        self._session += 1
        self.state = FormState.CLEAN

    def close(self) -> None:
        self._debouncer.cancel()
        self._snapshot = None
        self._touched = set()
        self._errors = {}
        self._failed = False
        self._session += 1
        self.state = FormState.CLEAN

    def validate(self, values: Mapping[str, Any]) -> FieldErrors:
        """Pure validation of ``values``; does not touch controller state."""

        errors = self._schema.validate(values)
        return {name: list(messages) for name, messages in errors.items() if messages}

    def set_field_value(self, name: str, value: Any) -> None:
        snapshot = self._require_snapshot()
        self._check_field(name)
        snapshot.current = {**snapshot.current, name: value}
        if self.state is not FormState.SUBMITTING:
            self.state = FormState.VALIDATING
        self._debouncer.schedule(None, self._config.validation_delay)

    def blur_field(self, name: str) -> None:
        snapshot = self._require_snapshot()
        self._check_field(name)
        self._touched.add(name)
        self._write_field(name, self.validate(snapshot.current))
        self._notify()

    async def submit(self) -> bool:
        """Save the form.

        Returns True on success, with the persisted entity in ``saved``; the
        caller then closes the dialog and refreshes the list. Returns False
        when the form was not submittable (all errors are then shown), when
        the save failed (errors are distributed onto the form) or when the
        dialog was closed before the response arrived.
        """

        snapshot = self._require_snapshot()
        if self.state is FormState.SUBMITTING:
            return False
        if not self.can_submit:
            self._debouncer.cancel()
            self._touched = set(self._schema.fields)
            self._errors = self.validate(snapshot.current)
            if self.state is FormState.VALIDATING:
                self.state = FormState.SUBMIT_FAILED if self._failed else FormState.CLEAN
            self._notify()
            return False

        session = self._session
        self._debouncer.cancel()
        self._errors.pop(GLOBAL_ERROR_KEY, None)
        self.state = FormState.SUBMITTING
        self._notify()
        payload = self._schema.to_payload(snapshot.current)
        LOGGER.debug("Submitting %s", self._schema.entity)

        try:
            saved = await self._save(payload)
        except asyncio.CancelledError:
            if session == self._session:
                LOGGER.debug("Submitting %s was cancelled", self._schema.entity)
                self.state = FormState.SUBMIT_FAILED if self._failed else FormState.CLEAN
                self._notify()
            raise
        except Exception as exc:
            if session != self._session:
                LOGGER.debug("Ignoring failure for closed %s dialog", self._schema.entity)
                return False
            self._apply_failure(exc)
            return False

        if session != self._session:
            LOGGER.debug("Ignoring result for closed %s dialog", self._schema.entity)
            return False
        self.saved = saved
        self._failed = False
        self.state = FormState.CLEAN
        LOGGER.info("Saved %s", self._schema.entity)
        self._notify()
        return True

    def _apply_failure(self, exc: Exception) -> None:
        error = classify(exc)
        if isinstance(error, ValidationFailure):
            self._errors = distribute(error.payload, self._schema.fields, self._schema.composite_field)
        else:
            self._errors = {**self._errors, GLOBAL_ERROR_KEY: [error.message]}
        self._failed = True
        self.state = FormState.SUBMIT_FAILED
        LOGGER.warning("Saving %s failed: %s", self._schema.entity, error.message)
        self._notify()

    def _run_validation(self, _: None) -> None:
        if self._snapshot is None:
            return
        computed = self.validate(self._snapshot.current)
        for name in self._touched:
            self._write_field(name, computed)
        if self.state is FormState.VALIDATING:
            self.state = FormState.SUBMIT_FAILED if self._failed else FormState.CLEAN
        self._notify()

    def _write_field(self, name: str, computed: FieldErrors) -> None:
        messages = computed.get(name)
        if messages:
            self._errors[name] = list(messages)
        else:
            self._errors.pop(name, None)

    def _check_field(self, name: str) -> None:
        if name not in self._schema.fields:
            raise ValueError(f"Unknown form field: {name}")

    def _require_snapshot(self) -> FormSnapshot:
        if self._snapshot is None:
            raise RuntimeError("Form dialog is not open")
        return self._snapshot

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
