"""Tests for the product catalog."""

from decimal import Decimal

import pytest

from pos.catalog import Catalog
from pos.errors import DuplicateName, DuplicateSku, InvalidInput, InvalidRecipe, NotFound


@pytest.fixture
def catalog(store):
    return Catalog(store)


def _espresso(**overrides):
    data = {
        "name": "Espresso",
        "category": "coffee",
        "sku": "COF-ESP",
        "base_price": "3.50",
        "base_cost": 0.6,
        "recipe": [{"ingredient_id": "bean", "quantity_used": "10"}],
    }
    data.update(overrides)
    return data


class TestAddProduct:
    def test_normalizes_money_and_recipe(self, catalog):
        product = catalog.add_product(_espresso())
        assert product.base_price == Decimal("3.50")
        assert product.base_cost == Decimal("0.6")
        assert product.recipe[0].quantity_used == 10.0
        assert product.modifier_groups == []

    def test_invalid_recipe_entry_fails_whole_product(self, catalog):
        with pytest.raises(InvalidRecipe):
            catalog.add_product(_espresso(recipe=[{"ingredient_id": "bean", "quantity_used": 10}, {"quantity_used": 1}]))
        assert catalog.list_products() == []

    def test_recipe_must_be_a_list(self, catalog):
        with pytest.raises(InvalidInput):
            catalog.add_product(_espresso(recipe="bean"))

    def test_name_required(self, catalog):
        with pytest.raises(InvalidInput):
            catalog.add_product(_espresso(name=""))

    def test_negative_price_rejected(self, catalog):
        with pytest.raises(InvalidInput):
            catalog.add_product(_espresso(base_price=-1))

    def test_duplicate_name_ignores_case(self, catalog):
        catalog.add_product(_espresso())
        with pytest.raises(DuplicateName):
            catalog.add_product(_espresso(name="espresso", sku="OTHER"))

    def test_duplicate_sku(self, catalog):
        catalog.add_product(_espresso())
        with pytest.raises(DuplicateSku):
            catalog.add_product(_espresso(name="Doppio", sku="cof-esp"))

    def test_empty_skus_may_repeat(self, catalog):
        catalog.add_product(_espresso(sku=""))
        catalog.add_product(_espresso(name="Doppio", sku=""))
        assert len(catalog.list_products()) == 2

    def test_modifier_group_needs_options(self, catalog):
        with pytest.raises(InvalidInput, match="at least one option"):
            catalog.add_product(_espresso(modifier_groups=[{"name": "Milk", "options": []}]))

    def test_duplicate_option_ids_rejected(self, catalog):
        options = [{"id": "a", "name": "A"}, {"id": "a", "name": "B"}]
        with pytest.raises(InvalidInput, match="duplicate option ids"):
            catalog.add_product(_espresso(modifier_groups=[{"name": "Milk", "options": options}]))

    def test_missing_group_and_option_ids_are_generated(self, catalog):
        product = catalog.add_product(_espresso(modifier_groups=[{"name": "Milk", "options": [{"name": "Oat"}]}]))
        group = product.modifier_groups[0]
        assert group.id
        assert group.options[0].id
        assert group.options[0].additional_price == Decimal("0")


class TestUpdateProduct:
    def test_partial_update_keeps_other_fields(self, catalog):
        product = catalog.add_product(_espresso())
        updated = catalog.update_product(product.id, {"base_price": "3.75"})
        assert updated.base_price == Decimal("3.75")
        assert updated.recipe == product.recipe
        assert updated.sku == "COF-ESP"

    def test_nested_lists_are_replaced(self, catalog):
        product = catalog.add_product(_espresso())
        updated = catalog.update_product(product.id, {"recipe": []})
        assert updated.recipe == []

    def test_id_in_patch_is_ignored(self, catalog):
        product = catalog.add_product(_espresso())
        assert catalog.update_product(product.id, {"id": "other", "name": "Ristretto"}).id == product.id

    def test_unknown_field(self, catalog):
        product = catalog.add_product(_espresso())
        with pytest.raises(InvalidInput, match="colour"):
            catalog.update_product(product.id, {"colour": "brown"})

    def test_rename_onto_another_product(self, catalog):
        catalog.add_product(_espresso())
        other = catalog.add_product(_espresso(name="Doppio", sku="COF-DOP"))
        with pytest.raises(DuplicateName):
            catalog.update_product(other.id, {"name": "ESPRESSO"})

    def test_bad_patch_leaves_product_untouched(self, catalog):
        product = catalog.add_product(_espresso())
        with pytest.raises(InvalidRecipe):
            catalog.update_product(product.id, {"recipe": [{"ingredient_id": "", "quantity_used": 1}]})
        assert catalog.get_product(product.id).recipe == product.recipe

    def test_unknown_product(self, catalog):
        with pytest.raises(NotFound):
            catalog.update_product("nope", {"name": "x"})


class TestLookups:
    def test_remove(self, catalog):
        product = catalog.add_product(_espresso())
        catalog.remove_product(product.id)
        assert catalog.get_product(product.id) is None
        with pytest.raises(NotFound):
            catalog.remove_product(product.id)

    def test_reload_from_store(self, catalog, store):
        product = catalog.add_product(_espresso())
        assert Catalog(store).get_product(product.id) == product

    def test_resolve_option(self, session, latte):
        group, option = session.catalog.resolve_option(latte.product.id, "milk", "soy")
        assert group.name == "Milk"
        assert option.additional_price == Decimal("0.50")
        assert session.catalog.resolve_option(latte.product.id, "milk", "oat") is None
        assert session.catalog.resolve_option(latte.product.id, "sugar", "soy") is None
        assert session.catalog.resolve_option("nope", "milk", "soy") is None
