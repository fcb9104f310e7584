"""Modal dialogs for the admin console."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widget import Widget
from textual.widgets import Button, Input, Select, Static, Switch, TextArea

from core.config import FormConfig
from core.form_controller import FormState, ValidatedFormController
from core.models import GLOBAL_ERROR_KEY
from core.ports import SaveCallable

from .pages import FieldControl, PageDef

FIELD_PREFIX = "field-"
# Lookup selects use 0 for "nothing selected" since Select values must be hashable and non-blank.
NO_SELECTION = 0


def lookup_options(
    empty_label: str,
    options: list[tuple[str, Any]],
    current: Any = None,
) -> list[tuple[str, Any]]:
    """Options for a lookup Select, keeping ``current`` selectable if it is unknown."""

    result: list[tuple[str, Any]] = [(empty_label, NO_SELECTION), *options]
    if current not in (None, NO_SELECTION) and all(value != current for _, value in result):
        result.append((f"#{current}", current))
    return result


class DiscardChangesScreen(ModalScreen[str]):
    """Prompt when closing a form with unsaved changes."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Unsaved changes", classes="modal-title"),
            Static("Discard your changes?", classes="modal-body"),
            Horizontal(
                Button("Discard", id="discard-confirm", variant="error"),
                Button("Keep editing", id="discard-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "discard-confirm":
            self.dismiss("discard")
        else:
            self.dismiss("cancel")


class DeleteConfirmScreen(ModalScreen[bool]):
    """Confirm deletion of a list row."""

    def __init__(self, entity: str, label: str) -> None:
        super().__init__()
        self._entity = entity
        self._label = label or "(untitled)"

    def compose(self) -> ComposeResult:
        yield Container(
            Static(f"Delete {self._entity}?", classes="modal-title"),
            Static(self._label, classes="modal-body"),
            Horizontal(
                Button("Delete", id="delete-confirm", variant="error"),
                Button("Cancel", id="delete-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "delete-confirm":
            self.dismiss(True)
        else:
            self.dismiss(False)


class EntityFormScreen(ModalScreen[bool]):
    """Create/edit dialog driven by ``ValidatedFormController``.

    Dismisses with True once the entity was saved, False when closed.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(
        self,
        page: PageDef,
        entity: Optional[dict[str, Any]],
        save: SaveCallable,
        lookups: dict[str, list[tuple[str, Any]]],
        config: FormConfig,
    ) -> None:
        super().__init__()
        schema = page.form
        if schema is None:
            raise ValueError(f"{page.name} has no form")
        self._page = page
        self._entity = entity
        self._save = save
        self._lookups = lookups
        self._config = config
        self._schema = schema
        self._controls = {control.name: control for control in page.form_fields}
        self._controller: Optional[ValidatedFormController] = None
        self._loading_form = False

    @property
    def controller(self) -> ValidatedFormController:
        if self._controller is None:
            raise RuntimeError("Form screen is not mounted")
        return self._controller

    def compose(self) -> ComposeResult:
        verb = "Edit" if self._entity is not None else "New"
        with Container(classes="modal-dialog modal-dialog--form"):
            yield Static(f"{verb} {self._schema.entity}", classes="modal-title")
            yield Static("", id="form-error", classes="modal-error")
            with VerticalScroll(id="form-fields"):
                for control in self._page.form_fields:
                    yield Static(control.label, classes="form-label")
                    yield self._build_widget(control)
                    yield Static("", id=f"error-{control.name}", classes="field-error")
                # Fields without a widget (e.g. product images) still show server errors.
                for name in self._schema.fields:
                    if name not in self._controls:
                        yield Static("", id=f"error-{name}", classes="field-error")
            yield Horizontal(
                Button("Save", id="form-save", variant="success"),
                Button("Cancel", id="form-cancel"),
                classes="modal-actions",
            )

    def on_mount(self) -> None:
        self._controller = ValidatedFormController(
            self._schema,
            self._save,
            asyncio.get_running_loop(),
            self._config,
            on_change=self._render_state,
        )
        initial = self._schema.from_entity(self._entity) if self._entity is not None else None
        self._controller.open(initial)
        self._load_widgets()
        self._render_state()

    def _build_widget(self, control: FieldControl) -> Widget:
        widget_id = f"{FIELD_PREFIX}{control.name}"
        if control.kind == "textarea":
            return TextArea(id=widget_id)
        if control.kind == "switch":
            return Switch(value=False, id=widget_id)
        if control.kind == "select":
            return Select(self._select_options(control), allow_blank=False, id=widget_id)
        return Input(id=widget_id)

    def _select_options(self, control: FieldControl, current: Any = None) -> list[tuple[str, Any]]:
        if control.lookup:
            return lookup_options("None", self._lookups.get(control.lookup, []), current)
        return list(control.options)

    def _load_widgets(self) -> None:
        self._loading_form = True
        try:
            values = self.controller.values
            for control in self._page.form_fields:
                value = values.get(control.name)
                widget = self.query_one(f"#{FIELD_PREFIX}{control.name}")
                if isinstance(widget, TextArea):
                    widget.text = "" if value is None else str(value)
                elif isinstance(widget, Switch):
                    widget.value = bool(value)
                elif isinstance(widget, Select):
                    if control.lookup:
                        widget.set_options(self._select_options(control, value))
                        widget.value = value if value is not None else NO_SELECTION
                    elif value is not None:
                        widget.value = value
                elif isinstance(widget, Input):
                    widget.value = "" if value is None else str(value)
        finally:
            self._loading_form = False

    def _render_state(self) -> None:
        if not self.is_mounted or self._controller is None or not self._controller.is_open:
            return
        controller = self._controller
        errors = controller.errors
        self.query_one("#form-error", Static).update("\n".join(errors.get(GLOBAL_ERROR_KEY, [])))
        for name in self._schema.fields:
            self.query_one(f"#error-{name}", Static).update("\n".join(errors.get(name, [])))
        save_btn = self.query_one("#form-save", Button)
        submitting = controller.state is FormState.SUBMITTING
        save_btn.disabled = submitting
        save_btn.label = "Saving..." if submitting else "Save"

    def _field_name(self, widget: Optional[Any]) -> Optional[str]:
        node = widget
        while node is not None and node is not self:
            node_id = getattr(node, "id", None) or ""
            if node_id.startswith(FIELD_PREFIX):
                return node_id[len(FIELD_PREFIX) :]
            node = node.parent
        return None

    def _set_value(self, widget: Any, value: Any) -> None:
        if self._loading_form or self._controller is None or not self._controller.is_open:
            return
        name = self._field_name(widget)
        if name is None:
            return
        self._controller.set_field_value(name, value)

    @on(Input.Changed)
    def _on_input_changed(self, event: Input.Changed) -> None:
        self._set_value(event.control, event.control.value)

    @on(TextArea.Changed)
    def _on_text_changed(self, event: TextArea.Changed) -> None:
        self._set_value(event.control, event.control.text)

    @on(Switch.Changed)
    def _on_switch_changed(self, event: Switch.Changed) -> None:
        self._set_value(event.control, event.control.value)

    @on(Select.Changed)
    def _on_select_changed(self, event: Select.Changed) -> None:
        value = event.control.value
        if value is Select.BLANK:
            return
        name = self._field_name(event.control)
        control = self._controls.get(name or "")
        if control is not None and control.lookup and value == NO_SELECTION:
            value = None
        self._set_value(event.control, value)

    def on_descendant_blur(self, event: events.DescendantBlur) -> None:
        if self._controller is None or not self._controller.is_open:
            return
        name = self._field_name(event.widget)
        if name is not None:
            self._controller.blur_field(name)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "form-save":
            self.run_worker(self._submit(), exclusive=True, group="form-submit")
        elif event.button.id == "form-cancel":
            self.action_cancel()

    async def _submit(self) -> None:
        if await self.controller.submit():
            self.controller.close()
            self.dismiss(True)

    def action_cancel(self) -> None:
        if self._controller is not None and self._controller.dirty:
            self.app.push_screen(DiscardChangesScreen(), self._handle_discard_choice)
        else:
            self._close()

    def _handle_discard_choice(self, choice: str | None) -> None:
        if choice == "discard":
            self._close()

    def _close(self) -> None:
        if self._controller is not None:
            self._controller.close()
        self.dismiss(False)
