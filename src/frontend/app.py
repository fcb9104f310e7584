"""Main Textual app for the shopdesk admin console."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Center, Container, Horizontal, Vertical
from textual.widgets import ContentSwitcher, Footer, Static, Tab, Tabs

from adapters.http_api import AdminApi, build_async_client
from adapters.location import split_route
from core.config import ApiConfig, ConsoleContext, FormConfig, ListConfig
from core.errors import ConsoleError
from core.list_source import normalize_list_payload

from .constants import ACCENT, LOOKUP_LIMIT
from .pages import LOOKUPS, PAGES, PAGES_BY_PATH
from .tabs.list_tab import ListTab

LOGGER = logging.getLogger(__name__)

TAB_PREFIX = "list-"


class AdminConsoleApp(App):
    """Admin console with one list tab per resource."""

    BINDINGS = [
        ("ctrl+r", "refresh_list", "Refresh"),
        ("ctrl+l", "focus_location", "Location"),
        ("q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        background: #17140f;
        color: #efe8dc;
    }

    #header {
        height: 5;
        padding: 0 2;
        border-bottom: solid #3a3226;
    }

    #header-left, #header-right {
        width: 1fr;
    }

    #header-right {
        content-align: right top;
        text-align: right;
    }

    #title {
        text-style: bold;
    }

    .subtle {
        color: #c9bfae;
    }

    #tabs-bar {
        height: 3;
        padding: 0 2;
    }

    #tabs {
        width: auto;
    }

    .list-location {
        margin: 0 0 1 0;
    }

    .list-toolbar, .list-footer {
        height: auto;
    }

    .list-search {
        width: 1fr;
    }

    .list-filter, .list-sort {
        width: 22;
    }

    #rows {
        height: 1fr;
    }

    #page-info, #list-status {
        width: auto;
        padding: 1 2;
    }

    .status-error, .modal-error, .field-error {
        color: #ff6b5b;
    }

    .status-loading {
        color: #c9bfae;
    }

    ModalScreen {
        align: center middle;
    }

    .modal-dialog {
        width: 72;
        height: auto;
        max-height: 90%;
        padding: 1 2;
        border: round #3a3226;
        background: #221d16;
    }

    .modal-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #form-fields {
        height: auto;
        max-height: 30;
    }

    #form-fields TextArea {
        height: 5;
    }

    .modal-actions {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        api_config: ApiConfig,
        lists: ListConfig = ListConfig(),
        forms: FormConfig = FormConfig(),
        route: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.api_config = api_config
        self.api = AdminApi(build_async_client(api_config, transport=transport))
        self.lookups: dict[str, list[tuple[str, Any]]] = {}
        self._lists = lists
        self._forms = forms
        path, query_string = split_route(route or PAGES[0].path)
        page = PAGES_BY_PATH.get(path)
        if page is None:
            LOGGER.warning("Unknown route %s, opening %s", path, PAGES[0].path)
            page, query_string = PAGES[0], ""
        self._initial_page = page.name
        self._initial_query = query_string

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static("catalog, promo codes and users", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static(f"api: {self.api_config.base_url}", classes="subtle")
                    yield Static("auth: token" if self.api_config.token else "auth: none", classes="subtle")

        with Container(id="tabs-bar"):
            with Center(id="tabs-center"):
                yield Tabs(*(Tab(page.title, id=page.name) for page in PAGES), id="tabs")

        context = ConsoleContext(
            scheduler=asyncio.get_running_loop(),
            api=self.api,
            lists=self._lists,
            forms=self._forms,
        )
        with ContentSwitcher(id="content", initial=f"{TAB_PREFIX}{self._initial_page}"):
            for page in PAGES:
                query_string = self._initial_query if page.name == self._initial_page else ""
                yield ListTab(page, context, query_string, id=f"{TAB_PREFIX}{page.name}")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#tabs", Tabs).active = self._initial_page
        self.reload_lookups()

    async def on_unmount(self) -> None:
        await self.api.aclose()

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        tab_id = event.tab.id or ""
        if tab_id:
            self._set_active_tab(tab_id)

    def _set_active_tab(self, page_name: str) -> None:
        switcher = self.query_one("#content", ContentSwitcher)
        switcher.current = f"{TAB_PREFIX}{page_name}"

    def _current_tab(self) -> Optional[ListTab]:
        current = self.query_one("#content", ContentSwitcher).current
        if not current:
            return None
        return self.query_one(f"#{current}", ListTab)

    def open_route(self, route: str) -> None:
        """Open ``/page?query`` in its tab, as typed into a location bar."""

        path, query_string = split_route(route)
        page = PAGES_BY_PATH.get(path)
        if page is None:
            self.notify(f"Unknown page: {path}", severity="error")
            return
        self.query_one("#tabs", Tabs).active = page.name
        self._set_active_tab(page.name)
        self.query_one(f"#{TAB_PREFIX}{page.name}", ListTab).navigate(query_string)

    def action_refresh_list(self) -> None:
        tab = self._current_tab()
        if tab is not None:
            tab.refresh_list()

    def action_focus_location(self) -> None:
        tab = self._current_tab()
        if tab is not None:
            tab.query_one("#location").focus()

    def reload_lookups(self) -> None:
        self.run_worker(self._load_lookups(), exclusive=True, group="lookups")

    async def _load_lookups(self) -> None:
        params = {"page": 1, "limit": LOOKUP_LIMIT}
        for name, render in LOOKUPS.items():
            try:
                payload = await self.api.resource(name).list(params)
                result = normalize_list_payload(payload, 1, LOOKUP_LIMIT)
            except ConsoleError as exc:
                LOGGER.warning("Loading %s lookup failed: %s", name, exc.message)
                continue
            self.lookups[name] = [
                (render(item), item.get("id")) for item in result.items if isinstance(item, Mapping)
            ]
        for tab in self.query(ListTab):
            tab.apply_lookups()

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("SHOP", ACCENT),
            ("DESK > Admin Console", "bold"),
        )

