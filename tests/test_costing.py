"""Cost and allergen resolver, portion cost and scaling."""

from types import SimpleNamespace

import pytest

from servit.services.costing import (
    ALLERGENS,
    allergen_flags,
    compute_cost_and_allergens,
    cost_per_portion,
    resolve_scale_factor,
    scale_computed_cost,
)
from servit.services.exceptions import PriceLookupError


def line(ingredient_id, qty, unit=""):
    return SimpleNamespace(ingredient_id=ingredient_id, qty=qty, unit=unit)


def recipe(*lines, yield_qty=1):
    return SimpleNamespace(lines=list(lines), yield_qty=yield_qty)


def ingredient(name, allergens=(), unit="g"):
    return SimpleNamespace(name=name, allergens=list(allergens), unit=unit)


def price_lookup(prices):
    def _lookup(ingredient_id):
        if ingredient_id not in prices:
            return None
        return SimpleNamespace(value=prices[ingredient_id])
    return _lookup


INGREDIENTS = {
    "flour": ingredient("Flour", ["Wheat"]),
    "butter": ingredient("Butter", ["Dairy"]),
    "pesto": ingredient("Pesto", ["Dairy", "Tree Nuts"], unit="ml"),
}
PRICES = price_lookup({"flour": 0.003, "butter": 0.012, "pesto": 0.02})


def test_flour_line_resolves_current_unit_cost():
    computed = compute_cost_and_allergens(recipe(line("flour", 500)), INGREDIENTS, PRICES)
    assert computed.lines[0].unit_cost == pytest.approx(0.003)
    assert computed.lines[0].ext_cost == pytest.approx(1.5)
    assert computed.total == pytest.approx(1.5)


def test_empty_recipe():
    computed = compute_cost_and_allergens(recipe(), INGREDIENTS, PRICES)
    assert computed.total == 0
    assert computed.lines == []
    assert computed.allergens == []


def test_recipe_without_lines_attribute():
    computed = compute_cost_and_allergens(SimpleNamespace(lines=None), INGREDIENTS, PRICES)
    assert computed.total == 0


def test_missing_ingredient_degrades_to_zero():
    computed = compute_cost_and_allergens(
        recipe(line("flour", 100), line("ghost", 3, "kg"), line("butter", 10)),
        INGREDIENTS,
        PRICES,
    )
    ghost = computed.lines[1]
    assert ghost.ingredient_name == "ghost"
    assert ghost.unit == "kg"
    assert ghost.unit_cost == 0
    assert ghost.ext_cost == 0
    assert computed.total == pytest.approx(0.3 + 0.12)
    assert set(computed.allergens) == {"Wheat", "Dairy"}


def test_missing_ingredient_is_still_priced_by_raw_id():
    lookup = price_lookup({"legacy-sku": 2.0})
    computed = compute_cost_and_allergens(recipe(line("legacy-sku", 2)), {}, lookup)
    assert computed.lines[0].ext_cost == pytest.approx(4.0)
    assert computed.allergens == []


def test_unpriced_ingredient_costs_zero_but_keeps_allergens():
    computed = compute_cost_and_allergens(recipe(line("pesto", 30)), INGREDIENTS, price_lookup({}))
    assert computed.total == 0
    assert set(computed.allergens) == {"Dairy", "Tree Nuts"}


def test_failed_price_lookup_degrades_to_zero():
    def broken(ingredient_id):
        raise PriceLookupError(ingredient_id, RuntimeError("connection reset"))

    computed = compute_cost_and_allergens(recipe(line("flour", 500)), INGREDIENTS, broken)
    assert computed.lines[0].unit_cost == 0
    assert computed.total == 0


def test_allergen_union():
    ingredients = {
        "a": ingredient("A", ["Egg", "Fish"]),
        "b": ingredient("B", ["Fish", "Soy"]),
    }
    computed = compute_cost_and_allergens(recipe(line("a", 1), line("b", 1)), ingredients, price_lookup({}))
    assert set(computed.allergens) == {"Egg", "Fish", "Soy"}
    assert len(computed.allergens) == 3


def test_total_is_sum_of_line_costs():
    computed = compute_cost_and_allergens(
        recipe(line("flour", 333.3), line("butter", 17.1), line("pesto", 0.7)),
        INGREDIENTS,
        PRICES,
    )
    assert computed.total == sum(l.ext_cost for l in computed.lines)


def test_lines_keep_input_order_and_default_unit():
    computed = compute_cost_and_allergens(
        recipe(line("pesto", 1), line("flour", 1, "kg"), line("butter", 1)),
        INGREDIENTS,
        PRICES,
    )
    assert [l.ingredient_id for l in computed.lines] == ["pesto", "flour", "butter"]
    assert [l.unit for l in computed.lines] == ["ml", "kg", "g"]


def test_bad_quantities_count_as_zero():
    computed = compute_cost_and_allergens(
        recipe(line("flour", None), line("butter", "lots"), line("pesto", float("nan"))),
        INGREDIENTS,
        PRICES,
    )
    assert computed.total == 0


@pytest.mark.parametrize("yield_qty", [0, -2, None])
def test_cost_per_portion_floors_divisor_at_one(yield_qty):
    r = recipe(line("flour", 500), yield_qty=yield_qty)
    assert cost_per_portion(r, INGREDIENTS, PRICES) == pytest.approx(1.5)


def test_cost_per_portion_divides_by_yield():
    r = recipe(line("flour", 500), yield_qty=4)
    assert cost_per_portion(r, INGREDIENTS, PRICES) == pytest.approx(0.375)


@pytest.mark.parametrize("factor", [0.5, 1, 2, 3.7, 12])
def test_scaling_is_linear(factor):
    computed = compute_cost_and_allergens(
        recipe(line("flour", 333.3), line("butter", 17.1), line("pesto", 0.7)),
        INGREDIENTS,
        PRICES,
    )
    scaled = scale_computed_cost(computed, factor)
    assert scaled.total == pytest.approx(factor * computed.total, rel=1e-9)
    assert scaled.total == sum(l.ext_cost_scaled for l in scaled.lines)
    assert [l.qty_scaled for l in scaled.lines] == [l.qty * factor for l in computed.lines]


class TestResolveScaleFactor:
    def test_desired_yield_wins(self):
        assert resolve_scale_factor(4, multiplier=3, desired_yield=10) == pytest.approx(2.5)

    def test_zero_base_yield_counts_as_one(self):
        assert resolve_scale_factor(0, desired_yield=6) == pytest.approx(6)

    def test_negative_base_yield_counts_as_one(self):
        assert resolve_scale_factor(-2, desired_yield=10) == pytest.approx(10)

    def test_multiplier(self):
        assert resolve_scale_factor(4, multiplier=1.5) == pytest.approx(1.5)

    @pytest.mark.parametrize("multiplier", [None, 0, -1, "x"])
    def test_bad_multiplier_means_one(self, multiplier):
        assert resolve_scale_factor(4, multiplier=multiplier) == 1.0

    def test_non_positive_desired_yield_falls_back_to_multiplier(self):
        assert resolve_scale_factor(4, multiplier=2, desired_yield=0) == 2.0


def test_allergen_flags_cover_vocabulary():
    flags = allergen_flags(["Dairy", "Sesame"])
    assert list(flags) == list(ALLERGENS)
    assert flags["Dairy"] and flags["Sesame"]
    assert not flags["Peanuts"]
    assert not any(allergen_flags(None).values())
