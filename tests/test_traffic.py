"""
Tests for the traffic system: persistent road loads, congestion, commute
and induced demand.
"""

import pytest

from citysim.city.builder import create_transit_line
from citysim.core.state import RoadNetwork, TransitType, ZoneType, road_key
from citysim.system_dynamics.traffic import (
    BASE_COMMUTE_DISTANT,
    calculate_city_congestion,
    calculate_congestion,
    calculate_target_commute,
    calculate_target_load,
    transit_capacity_between,
    update_road_loads,
    update_traffic,
)


class TestRoadNetwork:
    def test_road_key_is_unordered(self):
        assert road_key("a", "b") == road_key("b", "a")

    def test_congestion_is_load_over_capacity(self):
        road = RoadNetwork(capacities={("a", "b"): 1000.0}, loads={("a", "b"): 250.0})
        assert calculate_congestion(road, "b", "a") == pytest.approx(0.25)

    def test_congestion_capped_at_one(self):
        road = RoadNetwork(capacities={("a", "b"): 100.0}, loads={("a", "b"): 900.0})
        assert calculate_congestion(road, "a", "b") == 1.0

    def test_unknown_segment_is_free_flowing(self):
        assert calculate_congestion(RoadNetwork(), "a", "b") == 0.0

    def test_city_congestion_is_segment_mean(self):
        road = RoadNetwork(
            capacities={("a", "b"): 100.0, ("b", "c"): 100.0},
            loads={("a", "b"): 20.0, ("b", "c"): 60.0},
        )
        assert calculate_city_congestion(road) == pytest.approx(0.4)

    def test_city_congestion_empty_network(self):
        assert calculate_city_congestion(RoadNetwork()) == 0.0


class TestTransitCapacity:
    def test_operational_line_counts(self):
        line = create_transit_line("l", "L", TransitType.RAIL, ["a", "b", "c"], 6000.0)
        assert transit_capacity_between("a", "b", [line]) == pytest.approx(6000.0)
        # Two stops apart halves the effective capacity
        assert transit_capacity_between("a", "c", [line]) == pytest.approx(3000.0)

    def test_line_under_construction_ignored(self):
        line = create_transit_line("l", "L", TransitType.RAIL, ["a", "b"], 6000.0, operational=False)
        assert transit_capacity_between("a", "b", [line]) == 0.0


class TestRoadLoads:
    def test_loads_seeded_from_congestion(self, state):
        # Both endpoints start at 0.5 congestion on a 5000-capacity road
        assert state.city.road_network.loads[road_key("a", "b")] == pytest.approx(2500.0)

    def test_each_segment_damped_once(self, state):
        road = state.city.road_network
        key = road_key("b", "c")
        before = road.loads[key]
        target = calculate_target_load(
            state.districts["b"], state.districts["c"], road.capacities[key], state.city.transit_lines
        )

        update_road_loads(state, {})

        assert road.loads[key] == pytest.approx(before * 0.8 + target * 0.2)

    def test_empty_road_fills_gradually(self, state):
        road = state.city.road_network
        key = road_key("a", "b")
        road.loads[key] = 0.0
        target = calculate_target_load(
            state.districts["a"], state.districts["b"], road.capacities[key], state.city.transit_lines
        )

        update_road_loads(state, {})

        assert road.loads[key] == pytest.approx(target * 0.2)

    def test_induced_demand(self, make_district):
        a = make_district("a")
        b = make_district("b")
        narrow = calculate_target_load(a, b, 1000.0, [])
        wide = calculate_target_load(a, b, 10000.0, [])
        assert wide > narrow

    def test_transit_absorbs_at_most_forty_percent(self, make_district):
        a = make_district("a")
        b = make_district("b")
        line = create_transit_line("l", "L", TransitType.RAIL, ["a", "b"], 1_000_000.0)
        without = calculate_target_load(a, b, 1000.0, [])
        with_transit = calculate_target_load(a, b, 1000.0, [line])
        assert with_transit == pytest.approx(without * 0.6)

    def test_mixed_use_reduces_load(self, make_district):
        plain_a = make_district("a")
        plain_b = make_district("b")
        mixed = {ZoneType.MIXED_USE: 60, ZoneType.COMMERCIAL: 30, ZoneType.PARK: 10}
        mixed_a = make_district("a", zones=mixed)
        mixed_b = make_district("b", zones=mixed)
        assert calculate_target_load(mixed_a, mixed_b, 1000.0, []) < calculate_target_load(
            plain_a, plain_b, 1000.0, []
        )


class TestCommute:
    def test_isolated_district_has_distant_commute(self, make_district):
        d = make_district("lonely")
        assert calculate_target_commute(d, {"lonely": d}, RoadNetwork(), []) == BASE_COMMUTE_DISTANT

    def test_transit_shortens_commute(self, state):
        a = state.districts["a"]
        road = state.city.road_network
        with_rail = calculate_target_commute(a, state.districts, road, state.city.transit_lines)
        without = calculate_target_commute(a, state.districts, road, [])
        assert with_rail < without

    def test_commute_damped(self, state):
        c = state.districts["c"]
        before = c.metrics.average_commute_minutes
        update_traffic(state, {})
        target = calculate_target_commute(
            c, state.districts, state.city.road_network, state.city.transit_lines
        )
        assert c.metrics.average_commute_minutes == pytest.approx(before * 0.85 + target * 0.15)


class TestUpdateTraffic:
    def test_congestion_stays_in_unit_interval(self, state):
        for _ in range(60):
            update_traffic(state, {})
        for d in state.districts.values():
            assert 0.0 <= d.metrics.traffic_congestion <= 1.0
            assert d.metrics.average_commute_minutes > 0

    def test_unknown_neighbour_reported(self, state):
        state.districts["c"].adjacent_districts.append("ghost")
        update_traffic(state, {})
        assert any("ghost" in message for message in state.diagnostics)

    def test_dangling_segment_reported(self, state):
        state.city.road_network.capacities[road_key("a", "ghost")] = 1000.0
        update_traffic(state, {})
        assert any("ghost" in message for message in state.diagnostics)
