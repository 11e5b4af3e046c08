"""Tests for catalog listing, filtering and event detail."""
from datetime import datetime

import pytest

from eventhub.services.catalog import CatalogQuery, EventFilters, parse_date_bound
from eventhub.services.errors import EventNotFoundError, ValidationError
from eventhub.services.ledger import RegistrationLedger


@pytest.fixture
def catalog_events(make_event):
    return [
        make_event(name="Jazz Under the Stars", category="Music", location="New Orleans, LA",
                   date=datetime(2026, 7, 12, 19, 0), description="Outdoor jazz concert"),
        make_event(name="Web Development Bootcamp", category="Workshop", location="Austin, TX",
                   date=datetime(2026, 4, 20, 10, 0), description="React and Node.js"),
        make_event(name="Startup Pitch Night", category="Networking", location="Seattle, WA",
                   date=datetime(2026, 3, 25, 18, 0), description="Founders pitch to investors"),
        make_event(name="Cooking Class", category="Workshop", location="Austin, TX",
                   date=datetime(2026, 8, 5, 16, 0), description="Farm-to-table dinner"),
    ]


class TestListEvents:
    def test_lists_all_in_date_order(self, db_session, catalog_events):
        events, total = CatalogQuery(db_session).list_events()

        assert total == 4
        assert [e.name for e in events] == [
            "Startup Pitch Night",
            "Web Development Bootcamp",
            "Jazz Under the Stars",
            "Cooking Class",
        ]

    def test_search_matches_name_or_description_case_insensitively(self, db_session, catalog_events):
        by_name, _ = CatalogQuery(db_session).list_events(EventFilters(search="jazz"))
        by_description, _ = CatalogQuery(db_session).list_events(EventFilters(search="investors"))

        assert [e.name for e in by_name] == ["Jazz Under the Stars"]
        assert [e.name for e in by_description] == ["Startup Pitch Night"]

    def test_category_is_exact(self, db_session, catalog_events):
        events, total = CatalogQuery(db_session).list_events(EventFilters(category="Workshop"))

        assert total == 2
        assert {e.category for e in events} == {"Workshop"}

    def test_location_is_substring(self, db_session, catalog_events):
        _, total = CatalogQuery(db_session).list_events(EventFilters(location="Austin"))

        assert total == 2

    def test_date_range_is_inclusive_of_whole_end_day(self, db_session, catalog_events):
        events, total = CatalogQuery(db_session).list_events(
            EventFilters(date_from="2026-04-20", date_to="2026-07-12")
        )

        assert total == 2
        assert [e.name for e in events] == ["Web Development Bootcamp", "Jazz Under the Stars"]

    def test_filters_combine(self, db_session, catalog_events):
        events, total = CatalogQuery(db_session).list_events(
            EventFilters(category="Workshop", date_from="2026-06-01")
        )

        assert total == 1
        assert events[0].name == "Cooking Class"

    def test_pagination_returns_page_and_full_total(self, db_session, catalog_events):
        page_one, total = CatalogQuery(db_session).list_events(page=1, limit=3)
        page_two, _ = CatalogQuery(db_session).list_events(page=2, limit=3)

        assert total == 4
        assert len(page_one) == 3
        assert [e.name for e in page_two] == ["Cooking Class"]

    def test_page_past_the_end_is_empty(self, db_session, catalog_events):
        events, total = CatalogQuery(db_session).list_events(page=5, limit=3)

        assert events == []
        assert total == 4

    def test_like_wildcards_in_search_text_match_literally(self, db_session, catalog_events, make_event):
        make_event(name="100% Vinyl Night", category="Music", location="Portland_OR")

        by_percent, _ = CatalogQuery(db_session).list_events(EventFilters(search="%"))
        by_underscore, _ = CatalogQuery(db_session).list_events(EventFilters(location="_"))

        assert [e.name for e in by_percent] == ["100% Vinyl Night"]
        assert [e.name for e in by_underscore] == ["100% Vinyl Night"]

    def test_malformed_date_is_validation_error(self, db_session, catalog_events):
        with pytest.raises(ValidationError) as exc_info:
            CatalogQuery(db_session).list_events(EventFilters(date_from="next tuesday"))

        assert exc_info.value.fields == ["dateFrom"]

    def test_non_positive_page_is_validation_error(self, db_session):
        with pytest.raises(ValidationError):
            CatalogQuery(db_session).list_events(page=0)


class TestParseDateBound:
    def test_date_only_start_is_midnight(self):
        assert parse_date_bound("2026-03-01", "dateFrom") == datetime(2026, 3, 1, 0, 0)

    def test_date_only_end_is_end_of_day(self):
        bound = parse_date_bound("2026-03-01", "dateTo", end_of_day=True)
        assert bound.date() == datetime(2026, 3, 1).date()
        assert bound.hour == 23 and bound.minute == 59

    def test_offset_is_normalised_to_naive_utc(self):
        assert parse_date_bound("2026-03-01T10:00:00+02:00", "dateFrom") == datetime(2026, 3, 1, 8, 0)

    def test_empty_is_no_bound(self):
        assert parse_date_bound("", "dateFrom") is None


class TestEventDetail:
    def test_missing_event_is_not_found(self, db_session):
        with pytest.raises(EventNotFoundError):
            CatalogQuery(db_session).get_event(424242)

    def test_anonymous_caller_is_never_registered(self, db_session, sample_event):
        event, is_registered = CatalogQuery(db_session).get_event(sample_event.id)

        assert event.id == sample_event.id
        assert is_registered is False

    def test_registered_flag_follows_active_registration(self, db_session, sample_event, sample_user):
        catalog = CatalogQuery(db_session)
        ledger = RegistrationLedger(db_session)

        assert catalog.get_event(sample_event.id, user_id=sample_user.id)[1] is False
        ledger.register(sample_user.id, sample_event.id)
        assert catalog.get_event(sample_event.id, user_id=sample_user.id)[1] is True
        ledger.cancel(sample_user.id, sample_event.id)
        assert catalog.get_event(sample_event.id, user_id=sample_user.id)[1] is False


class TestFacets:
    def test_categories_are_distinct_and_sorted(self, db_session, catalog_events, make_event):
        make_event(name="Uncategorised", category=None)

        assert CatalogQuery(db_session).categories() == ["Music", "Networking", "Workshop"]

    def test_locations_are_distinct_and_sorted(self, db_session, catalog_events):
        assert CatalogQuery(db_session).locations() == ["Austin, TX", "New Orleans, LA", "Seattle, WA"]
