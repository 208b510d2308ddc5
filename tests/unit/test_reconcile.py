"""Tests for reconciling backend selections with the catalog."""

from supra.catalog.projector import project
from supra.models.search import SearchOutcome, SelectionEntry, SelectionResponse
from supra.search.reconcile import reconcile, resolve_entries


def _entry(restaurant_id, dish_name, price=0.0, category=None):
    return SelectionEntry(
        restaurant_id=restaurant_id,
        restaurant_name="whatever the backend said",
        dish_name=dish_name,
        dish_price=price,
        category=category,
    )


class TestReconcile:
    """Tests for reconcile()."""

    def test_single_match(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[_entry("11", "Khachapuri")])
        )

        restaurants = reconcile(outcome, sample_catalog)

        assert len(restaurants) == 1
        assert restaurants[0].id == 11
        assert restaurants[0].name == "Sakhli"
        assert [d.name for d in restaurants[0].dishes] == ["Khachapuri"]

    def test_catalog_values_win(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[_entry("11", "Khachapuri", price=999.0)])
        )

        dish = reconcile(outcome, sample_catalog)[0].dishes[0]

        assert float(dish.price) == 15.0

    def test_invented_dish_dropped(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[
                _entry("11", "Khachapuri"),
                _entry("11", "Mystery Pie"),
            ])
        )

        restaurants = reconcile(outcome, sample_catalog)

        assert [d.name for d in restaurants[0].dishes] == ["Khachapuri"]

    def test_unknown_restaurant_dropped(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[_entry("99", "Khachapuri")])
        )
        assert reconcile(outcome, sample_catalog) == []

    def test_dish_must_belong_to_named_restaurant(self, sample_catalog):
        # Churchkhela is served by restaurant 12 only
        outcome = SearchOutcome.success(
            SelectionResponse(results=[_entry("11", "Churchkhela")])
        )
        assert reconcile(outcome, sample_catalog) == []

    def test_duplicates_emitted_once(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[
                _entry("11", "Khachapuri"),
                _entry("11", "Khachapuri"),
            ])
        )

        restaurants = reconcile(outcome, sample_catalog)

        assert len(restaurants[0].dishes) == 1

    def test_same_dish_name_in_two_restaurants(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[
                _entry("12", "Beef Khinkali"),
                _entry("11", "Beef Khinkali"),
            ])
        )

        restaurants = reconcile(outcome, sample_catalog)

        # Catalog order, not backend order
        assert [r.id for r in restaurants] == [11, 12]
        assert all(len(r.dishes) == 1 for r in restaurants)

    def test_restaurants_without_matches_omitted(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[_entry("12", "Churchkhela")])
        )

        restaurants = reconcile(outcome, sample_catalog)

        assert [r.id for r in restaurants] == [12]

    def test_error_outcome_yields_empty(self, sample_catalog):
        assert reconcile(SearchOutcome.error("backend down"), sample_catalog) == []

    def test_none_and_empty(self, sample_catalog):
        assert reconcile(None, sample_catalog) == []
        assert reconcile(SelectionResponse(results=[]), sample_catalog) == []

    def test_catalog_not_mutated(self, sample_catalog):
        outcome = SearchOutcome.success(
            SelectionResponse(results=[_entry("11", "Khachapuri")])
        )

        reconcile(outcome, sample_catalog)

        assert len(sample_catalog[0].dishes) == 3

    def test_accepts_raw_response(self, sample_catalog):
        response = SelectionResponse(results=[_entry("12", "Tarkhuna Lemonade")])

        restaurants = reconcile(response, sample_catalog)

        assert restaurants[0].dishes[0].name == "Tarkhuna Lemonade"


class TestResolveEntries:
    """Tests for resolve_entries()."""

    def test_names_and_prices_from_catalog(self, sample_catalog):
        resolved = resolve_entries(
            [_entry("11", "Khachapuri", price=1.0)],
            project(sample_catalog),
        )

        assert resolved[0].restaurant_name == "Sakhli"
        assert resolved[0].dish_price == 15.0

    def test_unknown_dropped_and_deduplicated(self, sample_catalog):
        resolved = resolve_entries(
            [
                _entry("11", "Khachapuri"),
                _entry("11", "Mystery Pie"),
                _entry("11", "Khachapuri"),
            ],
            project(sample_catalog),
        )

        assert [e.key for e in resolved] == [("11", "Khachapuri")]

    def test_category_default(self, sample_catalog):
        resolved = resolve_entries(
            [_entry("11", "Beef Khinkali"), _entry("12", "Beef Khinkali", category="dumplings")],
            project(sample_catalog),
            category="khinkali",
        )

        assert [e.category for e in resolved] == ["khinkali", "dumplings"]
