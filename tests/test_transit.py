"""
Tests for the transit system: construction, ridership, opening boosts and
operating cost.
"""

import pytest

from citysim.city.builder import create_transit_line
from citysim.core.events import EventKind
from citysim.core.state import TransitType
from citysim.system_dynamics.transit import (
    calculate_ridership,
    calculate_target_ridership,
    is_transit_cost_effective,
    plan_transit_line,
    progress_construction,
    update_transit,
)


class TestRidership:
    def test_zero_while_under_construction(self, state):
        line = create_transit_line("new", "New", TransitType.RAIL, ["a", "b"], 5000.0, operational=False)
        line.ridership = 3000.0
        assert calculate_ridership(line, state.districts) == 0.0

    def test_damped_toward_target(self, state):
        line = state.city.transit_lines[0]
        line.ridership = 2000.0
        target = calculate_target_ridership(line, state.districts)
        assert calculate_ridership(line, state.districts) == round(2000.0 * 0.9 + target * 0.1)

    def test_capped_at_one_point_two_capacity(self, state):
        line = state.city.transit_lines[0]
        line.ridership = 50000.0
        assert calculate_ridership(line, state.districts) == pytest.approx(6000.0)

    def test_bus_has_density_floor(self, make_district):
        sparse = make_district("s", population=10)
        bus = create_transit_line("bus", "Bus", TransitType.BUS, ["s"], 1000.0)
        # Floor factor 0.3 at 60% target load
        assert calculate_target_ridership(bus, {"s": sparse}) == pytest.approx(1000.0 * 0.3 * 0.6)

    def test_no_known_districts(self):
        line = create_transit_line("l", "L", TransitType.RAIL, ["x"], 1000.0)
        assert calculate_ridership(line, {}) == 0.0


class TestConstruction:
    def test_opening_fires_exactly_once(self, state):
        line = create_transit_line("ext", "Extension", TransitType.RAIL, ["b", "c"], 4000.0, operational=False)
        line.construction_turns_remaining = 2
        state.city.transit_lines.append(line)
        c_metrics = state.districts["c"].metrics
        start_value = c_metrics.property_value

        assert progress_construction(state) == []
        assert line.construction_turns_remaining == 1

        events = progress_construction(state)
        assert line.operational
        assert len(events) == 1
        assert events[0].kind == EventKind.MILESTONE
        opened_value = c_metrics.property_value
        assert opened_value == pytest.approx(start_value + 0.15)

        assert progress_construction(state) == []
        assert c_metrics.property_value == pytest.approx(opened_value)

    def test_boost_only_for_opening_line(self, state):
        line = create_transit_line("bus_bc", "Bus B-C", TransitType.BUS, ["b", "c"], 2000.0, operational=False)
        line.construction_turns_remaining = 1
        state.city.transit_lines.append(line)
        a_before = state.districts["a"].metrics.property_value
        b_before = state.districts["b"].metrics.property_value

        progress_construction(state)

        assert state.districts["a"].metrics.property_value == pytest.approx(a_before)
        assert state.districts["b"].metrics.property_value == pytest.approx(b_before + 0.03 * 0.3)

    def test_plan_rail_line(self):
        line = plan_transit_line("p", "Planned", TransitType.RAIL, ["a", "b", "c"], 10000.0)
        assert line.construction_turns_remaining == 7
        assert line.operating_cost == pytest.approx(200.0)
        assert not line.operational
        assert line.ridership == 0.0

    def test_plan_bus_line(self):
        line = plan_transit_line("p", "Planned", TransitType.BUS, ["a", "b", "c"], 10000.0)
        assert line.construction_turns_remaining == 2
        assert line.operating_cost == pytest.approx(80.0)


class TestUpdateTransit:
    def test_cost_counts_operational_lines_only(self, state):
        state.city.transit_lines.append(
            create_transit_line("ext", "Ext", TransitType.RAIL, ["b", "c"], 4000.0, operational=False)
        )
        _, cost = update_transit(state, {})
        assert cost == pytest.approx(2500.0)

    def test_refreshes_district_access(self, state):
        state.districts["c"].has_transit_station = True
        update_transit(state, {})
        assert state.districts["a"].transit_lines == ["line_ab"]
        assert state.districts["b"].has_transit_station
        assert state.districts["c"].transit_lines == []
        assert not state.districts["c"].has_transit_station

    def test_city_ridership_is_sum(self, state):
        update_transit(state, {})
        assert state.metrics.transit_ridership == pytest.approx(
            sum(line.ridership for line in state.city.transit_lines)
        )

    def test_missing_district_reported(self, state):
        state.city.transit_lines.append(
            create_transit_line("ghost_line", "Ghost", TransitType.BUS, ["a", "ghost"], 1000.0)
        )
        update_transit(state, {})
        assert any("ghost" in message for message in state.diagnostics)


class TestCostEffectiveness:
    def test_cost_effective(self):
        line = create_transit_line("l", "L", TransitType.RAIL, ["a"], 5000.0)
        line.ridership = 1000.0
        effective, ratio = is_transit_cost_effective(line)
        assert effective
        assert ratio == pytest.approx(1.0)

    def test_not_cost_effective(self):
        line = create_transit_line("l", "L", TransitType.RAIL, ["a"], 5000.0)
        line.ridership = 100.0
        effective, ratio = is_transit_cost_effective(line)
        assert not effective
        assert ratio == pytest.approx(0.1)
