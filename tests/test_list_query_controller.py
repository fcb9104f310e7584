from __future__ import annotations

from typing import Any, Optional

from adapters.location import MemoryLocation
from core.config import ListConfig
from core.errors import NetworkFailure
from core.list_controller import ListQueryController, ListState
from core.list_pages import PRODUCTS
from core.models import Query, SortSpec
from core.scheduler import ManualScheduler


class FakeSource:
    def __init__(self, events: Optional[list[tuple[str, Any]]] = None) -> None:
        self.requests: list[Query] = []
        self.events = events if events is not None else []
        self.loading = False
        self.error: Any = None
        self.detached = False

    def request(self, query: Query) -> None:
        self.requests.append(query)
        self.events.append(("request", query))

    def detach(self) -> None:
        self.detached = True


class RecordingLocation(MemoryLocation):
    def __init__(self, query_string: str, events: list[tuple[str, Any]]) -> None:
        super().__init__("/products", query_string)
        self.events = events

    def replace(self, query_string: str) -> None:
        super().replace(query_string)
        self.events.append(("replace", query_string))


def _make(query_string: str = "") -> tuple[ListQueryController, FakeSource, RecordingLocation, ManualScheduler]:
    events: list[tuple[str, Any]] = []
    source = FakeSource(events)
    location = RecordingLocation(query_string, events)
    scheduler = ManualScheduler()
    controller = ListQueryController(PRODUCTS, source, location, scheduler, ListConfig(page_size=10, search_delay=0.4))
    controller.mount()
    return controller, source, location, scheduler


def test_mount_restores_query_from_location_without_rewriting_it() -> None:
    controller, source, location, _ = _make("search=shoe&page=3&status=active&sortDir=asc")

    assert controller.query.search == "shoe"
    assert controller.query.page == 3
    assert controller.query.filters["status"] == "active"
    assert controller.query.sort == SortSpec("createdAt", "asc")
    assert controller.search_text == "shoe"
    assert source.requests == [controller.query]
    assert ("replace", "search=shoe&page=3&status=active&sortDir=asc") not in location.events
    assert [kind for kind, _ in location.events] == ["request"]


def test_search_typing_publishes_only_the_last_value() -> None:
    controller, source, location, scheduler = _make()

    for text in ("s", "sh", "sho", "shoe"):
        controller.set_search_text(text)
        scheduler.advance(0.1)

    assert controller.search_text == "shoe"
    assert len(source.requests) == 1
    scheduler.advance(0.35)

    assert len(source.requests) == 2
    assert source.requests[-1].search == "shoe"
    assert source.requests[-1].page == 1
    assert location.read() == "search=shoe"


def test_sort_change_after_search_resets_page_only() -> None:
    controller, source, location, scheduler = _make()

    controller.set_search_text("shoe")
    scheduler.advance(0.5)
    controller.set_page(3)
    controller.set_sort("createdAt", "asc")

    assert len(source.requests) == 4
    latest = source.requests[-1]
    assert latest.search == "shoe"
    assert latest.page == 1
    assert latest.sort == SortSpec("createdAt", "asc")
    assert not controller.search_pending
    assert location.read() == "search=shoe&sortDir=asc"


def test_sort_change_does_not_restart_pending_search() -> None:
    controller, source, _, scheduler = _make()

    controller.set_search_text("shoe")
    scheduler.advance(0.2)
    controller.set_sort("price", "asc")

    assert source.requests[-1].search == ""
    assert source.requests[-1].sort == SortSpec("price", "asc")
    assert controller.search_pending

    scheduler.advance(0.25)

    assert not controller.search_pending
    assert source.requests[-1].search == "shoe"
    assert source.requests[-1].sort == SortSpec("price", "asc")
    assert len(source.requests) == 3


def test_search_whitespace_only_change_is_not_published() -> None:
    controller, source, _, scheduler = _make("search=shoe")

    controller.set_search_text("shoe  ")
    scheduler.advance(1)

    assert controller.search_text == "shoe  "
    assert len(source.requests) == 1


def test_filter_change_resets_page_and_repeats_are_ignored() -> None:
    controller, source, location, _ = _make("page=4")

    controller.set_filter("status", "active")
    controller.set_filter("status", "active")

    assert len(source.requests) == 2
    assert controller.query.page == 1
    assert location.read() == "status=active"


def test_invalid_or_unknown_filter_values_are_ignored() -> None:
    controller, source, _, _ = _make()

    controller.set_filter("sectionId", "abc")
    controller.set_filter("color", "red")
    controller.set_sort("weight", "asc")

    assert len(source.requests) == 1


def test_set_page_keeps_other_fields() -> None:
    controller, source, location, _ = _make("search=shoe&status=active")

    controller.set_page(2)

    assert controller.query.search == "shoe"
    assert controller.query.filters["status"] == "active"
    assert controller.query.page == 2
    assert location.read() == "page=2&search=shoe&status=active"

    controller.set_page(0)
    assert controller.query.page == 1


def test_clear_filters_resets_filters_and_sort_but_keeps_search() -> None:
    controller, _, location, _ = _make("search=shoe&categoryId=3&sortBy=price&sortDir=asc&page=2")

    controller.clear_filters()

    assert controller.query == Query(
        search="shoe",
        filters=PRODUCTS.default_filters(),
        sort=PRODUCTS.default_sort,
        page=1,
    )
    assert location.read() == "search=shoe"


def test_publishes_to_source_before_location() -> None:
    controller, source, location, _ = _make()
    location.events.clear()

    controller.set_filter("categoryId", 5)

    assert [kind for kind, _ in location.events] == ["request", "replace"]


def test_sync_from_location_adopts_external_change_without_writing_back() -> None:
    controller, source, location, _ = _make()
    location.events.clear()

    MemoryLocation.replace(location, "status=inactive&page=2")
    controller.sync_from_location()
    controller.sync_from_location()

    assert controller.query.filters["status"] == "inactive"
    assert controller.query.page == 2
    assert [kind for kind, _ in location.events] == ["request"]


def test_teardown_cancels_search_and_detaches_source() -> None:
    controller, source, _, scheduler = _make()

    controller.set_search_text("late")
    controller.teardown()
    scheduler.advance(1)

    assert len(source.requests) == 1
    assert source.detached
    assert not controller.mounted


def test_state_follows_source() -> None:
    controller, source, _, _ = _make()

    assert controller.state is ListState.IDLE
    source.loading = True
    assert controller.state is ListState.PENDING_FETCH
    source.loading = False
    source.error = NetworkFailure()
    assert controller.state is ListState.ERROR
    assert controller.error is source.error
