"""Generic list tab: search, filters, sort, paging and row actions."""

from __future__ import annotations

import functools
import logging
from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Input, Select, Static

from adapters.location import MemoryLocation
from core.config import ConsoleContext
from core.errors import ConsoleError
from core.list_controller import ListQueryController, ListState
from core.list_source import ListDataSource
from core.ports import ResourcePort

from ..modals import DeleteConfirmScreen, EntityFormScreen, NO_SELECTION, lookup_options
from ..pages import FilterControl, PageDef

LOGGER = logging.getLogger(__name__)

SORT_DIRECTION_OPTIONS = [("Descending", "desc"), ("Ascending", "asc")]


class ListTab(Container):
    """One list page bound to a ``ListQueryController``."""

    def __init__(self, page: PageDef, context: ConsoleContext, query_string: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._page = page
        self._context = context
        self._resource: ResourcePort = context.api.resource(page.name)
        self._location = MemoryLocation(page.path, query_string)
        self._source = ListDataSource(
            self._resource.list,
            page.schema,
            context.lists,
            on_change=self._render_list,
        )
        self._controller: Optional[ListQueryController] = None
        self._loading_form = False
        self._table_ready = False

    @property
    def page(self) -> PageDef:
        return self._page

    @property
    def location(self) -> MemoryLocation:
        return self._location

    @property
    def controller(self) -> ListQueryController:
        if self._controller is None:
            raise RuntimeError("List tab is not mounted")
        return self._controller

    def compose(self):
        with Vertical(classes="list-panel"):
            yield Input(id="location", classes="list-location", placeholder=self._page.path)
            with Horizontal(classes="list-toolbar"):
                yield Input(placeholder="Search", id="search", classes="list-search")
                for control in self._page.filters:
                    yield Select(
                        self._filter_options(control),
                        allow_blank=False,
                        id=f"filter-{control.name}",
                        classes="list-filter",
                    )
                yield Select(
                    [(label, name) for name, label in self._page.sort_labels],
                    allow_blank=False,
                    id="sort-field",
                    classes="list-sort",
                )
                yield Select(SORT_DIRECTION_OPTIONS, allow_blank=False, id="sort-dir", classes="list-sort")
                yield Button("Clear", id="clear-filters")
            yield DataTable(id="rows", cursor_type="row")
            with Horizontal(classes="list-footer"):
                yield Button("<", id="page-prev")
                yield Static("", id="page-info")
                yield Button(">", id="page-next")
                yield Static("", id="list-status")
                if self._page.form is not None:
                    yield Button("New", id="row-new", variant="success")
                    yield Button("Edit", id="row-edit")
                    yield Button("Delete", id="row-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one("#rows", DataTable)
        for column in self._page.columns:
            table.add_column(column.label, key=column.key, width=column.width)
        table.zebra_stripes = True
        self._table_ready = True
        self._controller = ListQueryController(
            self._page.schema,
            self._source,
            self._location,
            self._context.scheduler,
            self._context.lists,
        )
        self._controller.mount()
        self._sync_controls()
        self._render_list()

    def on_unmount(self) -> None:
        if self._controller is not None:
            self._controller.teardown()

    def navigate(self, query_string: str) -> None:
        """Open a shared or hand-edited query string in this tab."""

        self._location.replace(query_string)
        if self._controller is None:
            return
        self._controller.sync_from_location()
        self._sync_controls()
        self._render_list()

    def refresh_list(self) -> None:
        if self._controller is not None:
            self._controller.refresh()

    def apply_lookups(self) -> None:
        """Refill lookup-backed filter options after lookups were loaded."""

        if self._controller is not None:
            self._sync_controls()

    def _filter_options(self, control: FilterControl) -> list[tuple[str, Any]]:
        if not control.lookup:
            return list(control.options)
        current = None
        if self._controller is not None:
            current = self._controller.query.filters.get(control.name)
        lookups = getattr(self.app, "lookups", {})
        return lookup_options(f"Any {control.label.lower()}", lookups.get(control.lookup, []), current)

    def _filter_widget_value(self, control: FilterControl, value: Any) -> Any:
        spec = self._page.schema.filter_spec(control.name)
        if spec is not None and spec.kind == "integer":
            return value if value is not None else NO_SELECTION
        if spec is not None and spec.kind == "boolean":
            return "" if value is None else spec.encode(value)
        return "" if value is None else value

    def _sync_controls(self) -> None:
        """Show the controller's query in the toolbar widgets."""

        controller = self.controller
        query = controller.query
        self._loading_form = True
        try:
            search = self.query_one("#search", Input)
            if search.value != controller.search_text:
                search.value = controller.search_text
            for control in self._page.filters:
                select = self.query_one(f"#filter-{control.name}", Select)
                if control.lookup:
                    select.set_options(self._filter_options(control))
                select.value = self._filter_widget_value(control, query.filters.get(control.name))
            if query.sort is not None:
                self.query_one("#sort-field", Select).value = query.sort.field
                self.query_one("#sort-dir", Select).value = query.sort.direction
        finally:
            self._loading_form = False

    def _render_list(self) -> None:
        if not self._table_ready or self._controller is None:
            return
        controller = self._controller
        source = self._source
        table = self.query_one("#rows", DataTable)
        table.clear()
        for index, row in enumerate(source.items):
            table.add_row(*(column.render(row) for column in self._page.columns), key=str(index))

        query = controller.query
        self.query_one("#page-info", Static).update(f"page {query.page} / {source.page_count}")
        self.query_one("#page-prev", Button).disabled = query.page <= 1
        self.query_one("#page-next", Button).disabled = query.page >= source.page_count

        status = self.query_one("#list-status", Static)
        status.remove_class("status-loading", "status-error", "status-loaded")
        state = controller.state
        if state is ListState.PENDING_FETCH:
            status.update("loading...")
            status.add_class("status-loading")
        elif state is ListState.ERROR and controller.error is not None:
            suffix = " (showing last results)" if source.has_loaded else ""
            status.update(f"{controller.error.message}{suffix}")
            status.add_class("status-error")
        else:
            status.update(f"{source.total} total")
            status.add_class("status-loaded")

        location = self.query_one("#location", Input)
        if location.value != self._location.url:
            location.value = self._location.url
        self._update_action_state()

    def _update_action_state(self) -> None:
        if self._page.form is None:
            return
        has_row = self._current_row() is not None
        self.query_one("#row-edit", Button).disabled = not has_row
        self.query_one("#row-delete", Button).disabled = not has_row

    def _current_row(self) -> Optional[dict[str, Any]]:
        items = self._source.items
        if not items:
            return None
        table = self.query_one("#rows", DataTable)
        index = table.cursor_row
        if index is None or not 0 <= index < len(items):
            return None
        return items[index]

    @on(Input.Changed, "#search")
    def _on_search_changed(self, event: Input.Changed) -> None:
        if self._loading_form or self._controller is None:
            return
        value = event.control.value
        if value == self._controller.search_text:
            return
        self._controller.set_search_text(value)

    @on(Input.Submitted, "#location")
    def _on_location_submitted(self, event: Input.Submitted) -> None:
        self.app.open_route(event.value)

    @on(Select.Changed, ".list-filter")
    def _on_filter_changed(self, event: Select.Changed) -> None:
        if self._loading_form or self._controller is None:
            return
        value = event.control.value
        if value is Select.BLANK:
            return
        name = (event.control.id or "").removeprefix("filter-")
        spec = self._page.schema.filter_spec(name)
        if spec is not None and spec.kind == "integer" and value == NO_SELECTION:
            value = None
        self._controller.set_filter(name, value)

    @on(Select.Changed, ".list-sort")
    def _on_sort_changed(self) -> None:
        if self._loading_form or self._controller is None:
            return
        field = self.query_one("#sort-field", Select).value
        direction = self.query_one("#sort-dir", Select).value
        if field is Select.BLANK or direction is Select.BLANK:
            return
        self._controller.set_sort(str(field), str(direction))

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self._update_action_state()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if self._page.form is not None:
            self._open_form(self._current_row())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if self._controller is None:
            return
        button_id = event.button.id
        page = self._controller.query.page
        if button_id == "page-prev":
            self._controller.set_page(page - 1)
        elif button_id == "page-next":
            self._controller.set_page(page + 1)
        elif button_id == "clear-filters":
            self._controller.clear_filters()
            self._sync_controls()
        elif button_id == "row-new":
            self._open_form(None)
        elif button_id == "row-edit":
            row = self._current_row()
            if row is not None:
                self._open_form(row)
        elif button_id == "row-delete":
            self._confirm_delete()
        else:
            return
        event.stop()

    def _open_form(self, entity: Optional[dict[str, Any]]) -> None:
        if entity is None:
            save = self._resource.create
        else:
            save = functools.partial(self._resource.update, entity.get("id"))
        screen = EntityFormScreen(
            self._page,
            entity,
            save,
            getattr(self.app, "lookups", {}),
            self._context.forms,
        )
        self.app.push_screen(screen, self._handle_form_result)

    def _handle_form_result(self, saved: bool | None) -> None:
        if not saved:
            return
        self.app.notify(f"{self._page.form.entity.capitalize()} saved.")
        self.refresh_list()
        self.app.reload_lookups()

    def _confirm_delete(self) -> None:
        row = self._current_row()
        if row is None or self._page.form is None:
            return
        label = str(row.get("title") or row.get("code") or row.get("id", ""))
        entity_id = row.get("id")
        self.app.push_screen(
            DeleteConfirmScreen(self._page.form.entity, label),
            functools.partial(self._handle_delete, entity_id),
        )

    def _handle_delete(self, entity_id: Any, confirmed: bool | None) -> None:
        if confirmed:
            self.run_worker(self._delete(entity_id), group="row-delete")

    async def _delete(self, entity_id: Any) -> None:
        try:
            await self._resource.delete(entity_id)
        except ConsoleError as exc:
            LOGGER.warning("Deleting %s %s failed: %s", self._page.name, entity_id, exc.message)
            self.app.notify(exc.message, severity="error")
            return
        self.app.notify(f"{self._page.form.entity.capitalize()} deleted.")
        self.refresh_list()
        self.app.reload_lookups()
