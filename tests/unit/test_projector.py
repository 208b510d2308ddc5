"""Tests for catalog projection."""

from supra.catalog.projector import project, records_to_json
from supra.models.catalog import Restaurant


class TestProject:
    """Tests for project()."""

    def test_one_record_per_dish(self, sample_catalog):
        records = project(sample_catalog)

        assert len(records) == 6
        assert records[0].restaurant_id == "11"
        assert records[0].restaurant_name == "Sakhli"
        assert records[0].dish_name == "Khachapuri"
        assert records[0].dish_price == 15.0

    def test_preserves_catalog_order(self, sample_catalog):
        records = project(sample_catalog)

        assert [r.dish_name for r in records] == [
            "Khachapuri",
            "Beef Khinkali",
            "Pork Khinkali",
            "Beef Khinkali",
            "Churchkhela",
            "Tarkhuna Lemonade",
        ]

    def test_ids_are_strings(self, sample_catalog):
        records = project(sample_catalog)
        assert all(isinstance(r.restaurant_id, str) for r in records)

    def test_idempotent(self, sample_catalog):
        assert project(sample_catalog) == project(sample_catalog)

    def test_same_dish_name_in_two_restaurants_kept(self, sample_catalog):
        keys = [r.key for r in project(sample_catalog)]

        assert ("11", "Beef Khinkali") in keys
        assert ("12", "Beef Khinkali") in keys

    def test_empty_catalog(self):
        assert project([]) == []

    def test_restaurant_without_dishes(self):
        assert project([Restaurant(id=1, name="Empty")]) == []

    def test_records_to_json(self, sample_catalog):
        data = records_to_json(project(sample_catalog)[:1])

        assert data == [
            {
                "restaurant_id": "11",
                "restaurant_name": "Sakhli",
                "dish_name": "Khachapuri",
                "dish_price": 15.0,
            }
        ]
