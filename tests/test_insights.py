from datetime import date
from types import SimpleNamespace

import pytest

from servit.services.insights import compute_range, menu_item_costs, resolve_period, summarize_sales


def sale(menu_item_id, qty, price, day=date(2024, 5, 6), table=None, location="loc-1", name=None):
    return SimpleNamespace(
        menu_item_id=menu_item_id,
        menu_item_name=name or menu_item_id.title(),
        qty=qty,
        price_per_unit=price,
        line_total=qty * price,
        service_date=day,
        table_no=table,
        location_id=location,
        station="Mozza",
        type="Line Station",
    )


class TestComputeRange:
    # 2024-05-08 is a Wednesday
    today = date(2024, 5, 8)

    def test_today(self):
        assert compute_range("today", self.today) == (self.today, self.today)

    def test_yesterday(self):
        assert compute_range("yesterday", self.today) == (date(2024, 5, 7), date(2024, 5, 7))

    def test_this_week_starts_monday(self):
        assert compute_range("thisWeek", self.today) == (date(2024, 5, 6), self.today)

    def test_last_week(self):
        assert compute_range("lastWeek", self.today) == (date(2024, 4, 29), date(2024, 5, 5))

    def test_this_month(self):
        assert compute_range("thisMonth", self.today) == (date(2024, 5, 1), self.today)

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            compute_range("fortnight", self.today)


def test_explicit_dates_win_over_preset():
    today = date(2024, 5, 8)
    assert resolve_period("thisMonth", date(2024, 4, 1), date(2024, 4, 2), today) == (date(2024, 4, 1), date(2024, 4, 2))
    assert resolve_period(None, date(2024, 4, 1), None, today) == (date(2024, 4, 1), date(2024, 4, 1))
    assert resolve_period(None, None, None, today) == (today, today)


def test_menu_item_costs_use_portion_cost_and_zero_for_missing_recipe():
    recipes = {
        "dough": SimpleNamespace(
            id="dough",
            yield_qty=4,
            lines=[SimpleNamespace(ingredient_id="flour", qty=500, unit="g")],
        )
    }
    items = [
        SimpleNamespace(id="margherita", recipe_id="dough"),
        SimpleNamespace(id="calzone", recipe_id="dough"),
        SimpleNamespace(id="soda", recipe_id=None),
        SimpleNamespace(id="special", recipe_id="gone"),
    ]
    def lookup(ingredient_id):
        return SimpleNamespace(value=0.004)

    costs = menu_item_costs(items, recipes, {}, lookup)
    assert costs == {
        "margherita": pytest.approx(0.5),
        "calzone": pytest.approx(0.5),
        "soda": 0.0,
        "special": 0.0,
    }


def test_summarize_sales():
    sales = [
        sale("margherita", 2, 18.0, table="12"),
        sale("soda", 1, 3.0, table="12"),
        sale("margherita", 1, 18.0, table="4", day=date(2024, 5, 7), location="loc-2"),
        sale("soda", 3, 3.0),
    ]
    costs = {"margherita": 6.0, "soda": 0.5}

    summary = summarize_sales(sales, costs, target_food_cost_pct=30)

    assert summary.total_sales == pytest.approx(36 + 3 + 18 + 9)
    assert summary.total_items == 7
    assert summary.total_cogs == pytest.approx(12 + 0.5 + 6 + 1.5)
    assert summary.food_cost_pct == pytest.approx(20 / 66 * 100)
    assert summary.variance_pct == pytest.approx(20 / 66 * 100 - 30)
    assert summary.tables_count == 2
    assert summary.avg_check == pytest.approx(33)

    assert [b.key for b in summary.by_date] == ["2024-05-06", "2024-05-07"]
    assert summary.top_items[0].menu_item_id == "margherita"
    assert summary.top_items[0].qty == 3
    assert {b.key: b.sales for b in summary.by_location} == {
        "loc-1": pytest.approx(48),
        "loc-2": pytest.approx(18),
    }


def test_same_table_number_on_different_days_counts_twice():
    sales = [
        sale("soda", 1, 3.0, table="1", day=date(2024, 5, 6)),
        sale("soda", 1, 3.0, table="1", day=date(2024, 5, 7)),
    ]
    assert summarize_sales(sales, {}, 50).tables_count == 2


def test_no_sales():
    summary = summarize_sales([], {}, target_food_cost_pct=50)
    assert summary.total_sales == 0
    assert summary.food_cost_pct == 0
    assert summary.variance_pct == 0
    assert summary.avg_check == 0
    assert summary.top_items == []


def test_top_items_capped():
    sales = [sale(f"item-{i}", 1, float(i)) for i in range(1, 15)]
    summary = summarize_sales(sales, {}, 50, top_n=10)
    assert len(summary.top_items) == 10
    assert summary.top_items[0].menu_item_id == "item-14"
