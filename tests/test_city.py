"""
Tests for city construction, the bundled scenario and the policy catalog.
"""

import dataclasses

import pytest

from citysim.city.builder import (
    build_road_network,
    create_city,
    create_transit_line,
)
from citysim.core.state import PolicyCategory, TransitType, VoteRequirement, ZoneType, road_key
from citysim.policy import catalog
from citysim.scenarios.harbor_city import DOWNTOWN, build_harbor_city


class TestBuilder:
    def test_zones_must_sum_to_100(self, make_district):
        with pytest.raises(ValueError):
            make_district(zones={ZoneType.COMMERCIAL: 50, ZoneType.PARK: 20})

    def test_unknown_zone_type(self, make_district):
        with pytest.raises(ValueError):
            make_district(zones={"spaceport": 100})

    def test_missing_zones_are_zero(self, make_district):
        d = make_district(zones={ZoneType.COMMERCIAL: 100})
        assert d.zones[ZoneType.PARK] == 0.0
        assert d.current_density == pytest.approx(2000.0)

    def test_duplicate_district_rejected(self, make_district):
        with pytest.raises(ValueError):
            create_city("x", "X", [make_district("a"), make_district("a")], [])

    def test_one_representative_per_district(self, make_district, make_rep):
        with pytest.raises(ValueError):
            create_city("x", "X", [make_district("a")], [make_rep("r1", "a"), make_rep("r2", "a")])

    def test_election_interval_positive(self, make_district):
        with pytest.raises(ValueError):
            create_city("x", "X", [make_district("a")], [], election_interval=0)

    def test_city_config_rejects_zero_interval(self, small_city):
        with pytest.raises(ValueError):
            dataclasses.replace(small_city, election_interval=0)

    def test_road_network_one_segment_per_pair(self, make_district):
        a = make_district("a", adjacent=["b"])
        b = make_district("b", adjacent=["a"])
        road = build_road_network([a, b], lambda x, y: 1234.0)
        assert road.capacities == {road_key("a", "b"): 1234.0}
        assert road_key("b", "a") == road_key("a", "b")

    def test_transit_line_defaults(self):
        rail = create_transit_line("r", "Rail", TransitType.RAIL, ["a", "b"], 1000.0)
        bus = create_transit_line("b", "Bus", TransitType.BUS, ["a"], 1000.0, operational=False)
        assert rail.operational
        assert rail.ridership == pytest.approx(400.0)
        assert rail.operating_cost == pytest.approx(500.0)
        assert bus.construction_turns_remaining == 2
        assert bus.ridership == 0.0
        assert bus.property_value_boost == pytest.approx(0.3)


class TestHarborCity:
    def test_layout(self):
        city = build_harbor_city()
        assert len(city.districts) == 5
        assert set(city.representatives) == set(city.districts)
        assert len(city.scenario_goals) == 3
        for district in city.districts.values():
            for adj_id in district.adjacent_districts:
                assert adj_id in city.districts
                assert district.id in city.districts[adj_id].adjacent_districts

    def test_fresh_copy_each_call(self):
        first = build_harbor_city()
        first.districts[DOWNTOWN].population = 0
        assert build_harbor_city().districts[DOWNTOWN].population > 0


class TestCatalog:
    def test_ids_unique(self):
        proposals = [catalog.create_bus_lane_policy(["a"], "Main") for _ in range(5)]
        assert len({p.id for p in proposals}) == 5

    @pytest.mark.parametrize("level,revenue", [("low", 300), ("medium", 600), ("high", 900)])
    def test_congestion_pricing_levels(self, level, revenue):
        proposal = catalog.create_congestion_pricing_policy(["a", "b"], level)
        assert proposal.cost == -revenue
        assert proposal.category == PolicyCategory.CONGESTION_PRICING
        assert proposal.vote_requirement == VoteRequirement.SUPER_MAJORITY

    def test_congestion_pricing_bad_level(self):
        with pytest.raises(ValueError):
            catalog.create_congestion_pricing_policy(["a"], "extreme")

    def test_rail_cost_scales_with_stops(self):
        proposal = catalog.create_rail_line_policy(["a", "b", "c"], "Line 1")
        assert proposal.cost == pytest.approx(3500.0)

    def test_road_expansion_induces_demand(self):
        proposal = catalog.create_road_expansion_policy(["a"])
        relief, induced = proposal.effects
        assert relief.delta < 0 and relief.duration == 5
        assert induced.delta > 0 and induced.duration == 0

    def test_every_factory_validates(self):
        proposals = [
            catalog.create_upzone_policy("a", "A"),
            catalog.create_bus_route_policy(["a", "b"], "R1"),
            catalog.create_affordable_housing_policy("a", 200),
            catalog.create_reduce_parking_policy("a", "A"),
            catalog.create_tax_increase_policy(0.05),
            catalog.create_parking_enforcement_policy(["a"]),
            catalog.create_intersection_fix_policy("a", "A"),
            catalog.create_bus_frequency_policy(["a"], "R1"),
            catalog.create_green_space_policy("a", "A"),
            catalog.create_pilot_congestion_pricing_policy("a", "A"),
            catalog.create_walkability_policy("a", "A"),
        ]
        for proposal in proposals:
            assert proposal.validate() == []
            assert proposal.effects
