"""Tests for the listing service: normalization, filters and pagination"""

import pytest

from swim_registry.services.listing_service import (
    DEFAULT_PAGE_SIZE,
    ListingParams,
    normalize_page,
    normalize_page_size,
    parse_optional_int,
    total_pages,
)
from tests.config import TODAY, years_before


class TestNormalization:
    @pytest.mark.parametrize("value", [None, "", "0", "-3", "abc", "1.5", " 2", 0, -1])
    def test_invalid_page_resets_to_one(self, value):
        assert normalize_page(value) == 1

    @pytest.mark.parametrize("value,expected", [("1", 1), ("7", 7), (3, 3), ("+2", 2)])
    def test_valid_page(self, value, expected):
        assert normalize_page(value) == expected

    @pytest.mark.parametrize(
        "value", [None, "", "0", "-5", "101", "1000", "ten", "5.0", 0, 101]
    )
    def test_invalid_page_size_resets_to_default(self, value):
        assert normalize_page_size(value) == DEFAULT_PAGE_SIZE

    @pytest.mark.parametrize("value,expected", [("1", 1), ("25", 25), ("100", 100)])
    def test_valid_page_size(self, value, expected):
        assert normalize_page_size(value) == expected

    def test_parse_optional_int(self):
        assert parse_optional_int("12") == 12
        assert parse_optional_int("-4") == -4
        assert parse_optional_int("douze") is None
        assert parse_optional_int(None) is None
        assert parse_optional_int(True) is None

    def test_malformed_age_bounds_are_dropped_independently(self):
        params = ListingParams.from_query(filter_age_min="abc", filter_age_max="11")
        assert params.age_min is None
        assert params.age_max == 11

        params = ListingParams.from_query(filter_age_min="5", filter_age_max="")
        assert params.age_min == 5
        assert params.age_max is None

    @pytest.mark.parametrize(
        "value",
        [
            "9223372036854775808",
            "-9223372036854775809",
            "99999999999999999999",
            "-99999999999999999999",
            "9" * 400,
            "9" * 5000,
            2**63,
            -(2**63) - 1,
        ],
    )
    def test_integers_beyond_64_bits_are_malformed(self, value):
        assert parse_optional_int(value) is None
        assert normalize_page(value) == 1
        assert normalize_page_size(value) == DEFAULT_PAGE_SIZE

    def test_64_bit_limits_are_accepted(self):
        assert parse_optional_int("9223372036854775807") == 2**63 - 1
        assert parse_optional_int("-9223372036854775808") == -(2**63)
        assert parse_optional_int("0" * 30 + "12") == 12

    def test_out_of_range_age_bounds_are_dropped(self):
        params = ListingParams.from_query(filter_age_min="9" * 400, filter_age_max="9" * 5000)
        assert params.age_min is None
        assert params.age_max is None

    def test_page_whose_offset_overflows_resets_to_one(self):
        params = ListingParams.from_query(page="922337203685477580", limit="100")
        assert params.page == 1
        assert params.offset == 0

        params = ListingParams.from_query(page="9223372036854775807", limit="1")
        assert params.page == 2**63 - 1
        assert params.offset == 2**63 - 2

    def test_offset(self):
        params = ListingParams.from_query(page="3", limit="20")
        assert params.offset == 40

    @pytest.mark.parametrize(
        "total,page_size,expected",
        [(0, 10, 1), (1, 10, 1), (10, 10, 1), (11, 10, 2), (15, 10, 2), (100, 7, 15)],
    )
    def test_total_pages(self, total, page_size, expected):
        assert total_pages(total, page_size) == expected


class TestListing:
    def test_no_filters_returns_everything(self, listing_service, create_user):
        for _ in range(12):
            create_user()

        page = listing_service.list_users(ListingParams.from_query())

        assert page.total_count == 12
        assert len(page.records) == 10
        assert page.total_pages == 2

    def test_records_are_newest_first(self, listing_service, create_user):
        ids = [create_user().id for _ in range(3)]

        page = listing_service.list_users(ListingParams.from_query())

        assert [user.id for user in page.records] == sorted(ids, reverse=True)

    def test_pagination_over_fifteen_records(self, listing_service, create_user):
        ids = [create_user().id for _ in range(15)]

        first = listing_service.list_users(ListingParams.from_query(page="1", limit="10"))
        second = listing_service.list_users(ListingParams.from_query(page="2", limit="10"))

        assert len(first.records) == 10
        assert first.total_count == 15
        assert first.total_pages == 2
        assert len(second.records) == 5
        assert [u.id for u in first.records + second.records] == sorted(ids, reverse=True)

    def test_page_past_the_end_is_empty(self, listing_service, create_user):
        create_user()

        page = listing_service.list_users(ListingParams.from_query(page="5"))

        assert page.records == []
        assert page.total_count == 1

    def test_empty_result_still_has_one_page(self, listing_service):
        page = listing_service.list_users(ListingParams.from_query(search="personne"))

        assert page.records == []
        assert page.total_count == 0
        assert page.total_pages == 1

    def test_search_is_case_insensitive_across_name_and_email(
        self, listing_service, create_user
    ):
        by_first = create_user(first_name="Martin")
        by_last = create_user(last_name="Saint-Martin")
        by_email = create_user(email="martine@example.com")
        create_user(first_name="Paul", last_name="Durand", email="paul@example.com")

        page = listing_service.list_users(ListingParams.from_query(search="MARTIN"))

        assert {u.id for u in page.records} == {by_first.id, by_last.id, by_email.id}
        assert page.total_count == 3

    def test_skill_filter_is_exact_match(self, listing_service, create_user):
        advanced = create_user(niveau_natation="Avancé")
        create_user(niveau_natation="Avancé+")
        create_user(niveau_natation="Débutant")

        page = listing_service.list_users(ListingParams.from_query(filter_niveau="Avancé"))

        assert [u.id for u in page.records] == [advanced.id]

    def test_age_range(self, listing_service, create_user):
        ten = create_user(date_naissance=years_before(TODAY, 10).isoformat())
        five_and_half = create_user(
            date_naissance=years_before(TODAY, 5, months=6).isoformat()
        )

        both = listing_service.list_users(
            ListingParams.from_query(filter_age_min="5", filter_age_max="11")
        )
        none = listing_service.list_users(ListingParams.from_query(filter_age_min="20"))

        assert {u.id for u in both.records} == {ten.id, five_and_half.id}
        assert none.records == []
        assert none.total_count == 0

    def test_malformed_age_bound_is_ignored(self, listing_service, create_user):
        young = create_user(date_naissance=years_before(TODAY, 6).isoformat())
        create_user(date_naissance=years_before(TODAY, 40).isoformat())

        page = listing_service.list_users(
            ListingParams.from_query(filter_age_min="old", filter_age_max="12")
        )

        assert [u.id for u in page.records] == [young.id]

    def test_extreme_query_values_still_list(self, listing_service, create_user):
        create_user()

        oversized = listing_service.list_users(
            ListingParams.from_query(
                page="99999999999999999999",
                filter_age_min="9" * 400,
                filter_age_max="9" * 5000,
            )
        )
        last_page = listing_service.list_users(
            ListingParams.from_query(page="9223372036854775807", limit="1")
        )
        huge_bound = listing_service.list_users(
            ListingParams.from_query(filter_age_min="9223372036854775807")
        )

        assert oversized.page == 1
        assert len(oversized.records) == 1
        assert last_page.records == []
        assert last_page.total_count == 1
        assert huge_bound.total_count == 0

    def test_missing_birth_date_counts_as_age_zero(self, listing_service, create_user):
        legacy = create_user(date_naissance="")
        invalid = create_user(date_naissance="inconnue")
        create_user(date_naissance=years_before(TODAY, 30).isoformat())

        toddlers = listing_service.list_users(ListingParams.from_query(filter_age_max="3"))
        adults = listing_service.list_users(ListingParams.from_query(filter_age_min="1"))

        assert {u.id for u in toddlers.records} == {legacy.id, invalid.id}
        assert legacy.id not in {u.id for u in adults.records}
        assert adults.total_count == 1

    def test_combined_filters_intersect(self, listing_service, create_user):
        match = create_user(
            first_name="Lea",
            niveau_natation="Intermédiaire",
            date_naissance=years_before(TODAY, 8).isoformat(),
        )
        create_user(  # wrong level
            first_name="Lea",
            niveau_natation="Débutant",
            date_naissance=years_before(TODAY, 8).isoformat(),
        )
        create_user(  # too old
            first_name="Lea",
            niveau_natation="Intermédiaire",
            date_naissance=years_before(TODAY, 30).isoformat(),
        )
        create_user(  # no search match
            first_name="Hugo",
            niveau_natation="Intermédiaire",
            date_naissance=years_before(TODAY, 8).isoformat(),
        )

        def ids(**query):
            page = listing_service.list_users(ListingParams.from_query(**query))
            return {u.id for u in page.records}

        combined = ids(
            search="lea",
            filter_niveau="Intermédiaire",
            filter_age_min="5",
            filter_age_max="10",
        )

        assert combined == {match.id}
        assert combined == (
            ids(search="lea")
            & ids(filter_niveau="Intermédiaire")
            & ids(filter_age_min="5", filter_age_max="10")
        )

    def test_filters_apply_before_pagination(self, listing_service, create_user):
        for _ in range(12):
            create_user(niveau_natation="Avancé")
        for _ in range(5):
            create_user(niveau_natation="Débutant")

        page = listing_service.list_users(
            ListingParams.from_query(filter_niveau="Avancé", page="2", limit="10")
        )

        assert page.total_count == 12
        assert len(page.records) == 2
        assert all(u.niveau_natation == "Avancé" for u in page.records)
