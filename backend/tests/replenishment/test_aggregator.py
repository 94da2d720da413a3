"""Tests for order list aggregation."""

import itertools
from datetime import datetime
from decimal import Decimal

from orderdesk.replenishment.aggregator import (
    STATUS_FILTER_OPTIONS,
    build_order_list,
    filter_order_list,
    select_bulk_candidates,
    status_text,
)
from orderdesk.replenishment.models import (
    DisplayType,
    Material,
    Ordered,
    OrderListEntry,
    Requested,
    Unordered,
)

ORDER_DATE = datetime(2026, 5, 4, 10, 30)


def material(id, stock=None, threshold=None, excluded=False, order=None, **kwargs):
    return Material(
        id=id,
        material_id=kwargs.pop("material_id", f"MAT-{id:03d}"),
        stock=stock,
        reorder_threshold=threshold,
        exclude_from_auto_order=excluded,
        order=order or Unordered(),
        **kwargs,
    )


def all_combinations():
    """Every mix of stock, threshold, exclusion flag and order state."""
    orders = [
        None,
        Ordered(order_date=ORDER_DATE, ordered_quantity=4),
        Requested(quantity=1, requested_at=ORDER_DATE),
    ]
    combos = itertools.product([-3, -1, 0, 1, 4, 5, 9, None], [0, 5, None], [False, True], orders)
    return [
        material(i, stock=s, threshold=t, excluded=e, order=o, order_quantity=10)
        for i, (s, t, e, o) in enumerate(combos, 1)
    ]


class TestBuildOrderList:
    """Test the build_order_list function."""

    def test_scenario_mix(self):
        materials = [
            material(1, stock=-2, threshold=5, order_quantity=10),
            material(2, stock=3, threshold=5, order_quantity=25),
            material(3, stock=50, threshold=5),
            material(4, stock=3, threshold=5, excluded=True),
            material(5, stock=-1, order=Ordered(order_date=ORDER_DATE, ordered_quantity=20)),
            material(6, stock=8, threshold=2, order=Requested(quantity=3, requested_at=ORDER_DATE)),
        ]

        result = build_order_list(materials)

        assert [(e.material.id, e.display_type, e.display_quantity) for e in result.order_list] == [
            (1, DisplayType.NEEDED, 10),
            (2, DisplayType.LOW, 25),
            (5, DisplayType.ORDERED, 20),
            (6, DisplayType.REQUESTED, 3),
        ]
        assert [m.id for m in result.excluded_low_stock_materials] == [4]
        assert result.stats.to_order_count == 3
        assert result.stats.ordered_count == 1
        assert result.stats.excluded_count == 1
        assert result.stats.requested_count == 1
        assert result.stats.total_count == 4

    def test_excluded_material_only_in_excluded_list(self):
        m = material(1, stock=3, threshold=5, excluded=True)

        result = build_order_list([m])

        assert result.order_list == []
        assert result.excluded_low_stock_materials == [m]
        assert select_bulk_candidates([m]) == []

    def test_needed_quantity_falls_back_to_missing_units(self):
        result = build_order_list([material(1, stock=-7)])
        assert result.order_list[0].display_quantity == 7

    def test_low_without_order_quantity(self):
        result = build_order_list([material(1, stock=2, threshold=4)])
        assert result.order_list[0].display_quantity == 0

    def test_shortfall_on_ordered_material(self):
        ordered = Ordered(order_date=ORDER_DATE, ordered_quantity=5)
        result = build_order_list([
            material(1, stock=-8, order=ordered),
            material(2, stock=-3, order=ordered),
            material(3, stock=4, order=ordered),
        ])
        assert [e.shortfall for e in result.order_list] == [3, 0, 0]
        # A shortfall never produces a second, derived entry
        assert all(e.display_type is DisplayType.ORDERED for e in result.order_list)

    def test_keeps_input_order(self):
        materials = [material(i, stock=-1) for i in (7, 3, 9, 1)]
        result = build_order_list(materials)
        assert [e.material.id for e in result.order_list] == [7, 3, 9, 1]

    def test_is_idempotent(self):
        materials = all_combinations()
        assert build_order_list(materials) == build_order_list(materials)

    def test_lists_are_disjoint(self):
        result = build_order_list(all_combinations())
        listed = {e.material.id for e in result.order_list}
        excluded = {m.id for m in result.excluded_low_stock_materials}
        assert listed.isdisjoint(excluded)
        assert len(listed) == len(result.order_list)

    def test_counts_match_lists(self):
        result = build_order_list(all_combinations())
        by_type = {t: 0 for t in DisplayType}
        for entry in result.order_list:
            by_type[entry.display_type] += 1

        assert result.stats.ordered_count == by_type[DisplayType.ORDERED]
        assert result.stats.requested_count == by_type[DisplayType.REQUESTED]
        assert result.stats.to_order_count == (
            by_type[DisplayType.NEEDED] + by_type[DisplayType.LOW] + by_type[DisplayType.REQUESTED]
        )
        assert result.stats.excluded_count == len(result.excluded_low_stock_materials)

    def test_empty_input(self):
        result = build_order_list([])
        assert result.order_list == []
        assert result.excluded_low_stock_materials == []
        assert result.stats.total_count == 0


class TestBulkCandidates:
    """Test select_bulk_candidates."""

    def test_selects_negative_and_low(self):
        materials = [
            material(1, stock=-2, threshold=5, order_quantity=10),
            material(2, stock=3, threshold=5, order_quantity=25),
            material(3, stock=50, threshold=5, order_quantity=5),
            material(4, stock=3, threshold=5, excluded=True),
            material(5, stock=-2, order=Ordered(order_date=ORDER_DATE, ordered_quantity=1)),
        ]
        candidates = select_bulk_candidates(materials)
        assert [(e.material.id, e.display_quantity) for e in candidates] == [(1, 10), (2, 25)]
        assert all(e.display_type is DisplayType.NEEDED for e in candidates)

    def test_default_quantity_matches_order_list(self):
        materials = [
            material(1, stock=-3),
            material(2, stock=2, threshold=5),
        ]
        candidates = select_bulk_candidates(materials)
        listed = build_order_list(materials).order_list

        assert [e.display_quantity for e in candidates] == [3, 0]
        assert candidates[0].display_quantity == listed[0].display_quantity


class TestStatusTextAndFilter:
    """Test status rendering and list filtering."""

    def entry(self, display_type, quantity=4, **kwargs):
        return OrderListEntry(
            material=material(kwargs.pop("id", 1), **kwargs),
            display_type=display_type,
            display_quantity=quantity,
        )

    def test_status_text(self):
        assert status_text(self.entry(DisplayType.ORDERED, 20)) == "Ordered (20)"
        assert status_text(self.entry(DisplayType.NEEDED, 10)) == "Reorder (10)"
        assert status_text(self.entry(DisplayType.ADDITIONAL, 5)) == "Reorder (5)"
        assert status_text(self.entry(DisplayType.LOW)) == "Low"
        assert status_text(self.entry(DisplayType.REQUESTED, 2)) == "Requested (2)"

    def test_filter_options(self):
        assert STATUS_FILTER_OPTIONS[0] == "all"

    def test_filter_by_search_term(self):
        entries = [
            self.entry(DisplayType.NEEDED, id=1, material_id="PV-MOD-400", description="Solar module 400W"),
            self.entry(DisplayType.NEEDED, id=2, material_id="INV-10K", manufacturer="Fronius"),
            self.entry(DisplayType.LOW, id=3, material_id="CAB-6MM", description="DC cable 6mm²"),
        ]
        assert [e.material.id for e in filter_order_list(entries, search="fronius")] == [2]
        assert [e.material.id for e in filter_order_list(entries, search="MOD")] == [1]
        assert [e.material.id for e in filter_order_list(entries, search="  ")] == [1, 2, 3]

    def test_filter_by_status(self):
        entries = [
            self.entry(DisplayType.NEEDED, id=1),
            self.entry(DisplayType.ORDERED, id=2),
            self.entry(DisplayType.LOW, id=3),
            self.entry(DisplayType.REQUESTED, id=4),
        ]
        assert [e.material.id for e in filter_order_list(entries, status="Reorder")] == [1]
        assert [e.material.id for e in filter_order_list(entries, status="Ordered")] == [2]
        assert [e.material.id for e in filter_order_list(entries, status="Low")] == [3]
        assert [e.material.id for e in filter_order_list(entries, status="Requested")] == [4]
        assert len(filter_order_list(entries, status="all")) == 4

    def test_price_is_carried_through(self):
        result = build_order_list([material(1, stock=-1, price=Decimal("12.50"))])
        assert result.order_list[0].material.price == Decimal("12.50")
