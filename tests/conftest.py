"""
Shared test fixtures.

Provides factories for districts and representatives, a small
three-district city laid out in a line (a - b - c), a ready game state
and engines in both modes.
"""

import copy

import pytest

from citysim.city.builder import (
    create_city,
    create_district,
    create_representative,
    create_transit_line,
)
from citysim.core.config import GameMode
from citysim.core.engine import SimulationEngine
from citysim.core.state import (
    Budget,
    CityConfig,
    CityMetrics,
    GameState,
    PolicyCategory,
    PoliticalLeaning,
    TransitType,
    ZoneType,
)
from citysim.system_dynamics.traffic import initialize_road_loads
from citysim.system_dynamics.zoning import update_district_density


DEFAULT_ZONES = {
    ZoneType.MID_DENSITY_RESIDENTIAL: 60,
    ZoneType.COMMERCIAL: 30,
    ZoneType.PARK: 10,
}


@pytest.fixture
def make_district():
    def _make(district_id="d1", population=10000, area=5.0, max_density=10000.0,
              zones=None, adjacent=(), **kwargs):
        return create_district(
            district_id, f"District {district_id.upper()}",
            population=population, area=area, max_density=max_density,
            zones=dict(zones or DEFAULT_ZONES), adjacent_districts=list(adjacent),
            **kwargs,
        )
    return _make


@pytest.fixture
def make_rep():
    def _make(rep_id="r1", district_id="d1", leaning=PoliticalLeaning.MODERATE,
              priorities=(), **overrides):
        rep = create_representative(rep_id, f"Rep. {rep_id}", district_id, leaning, list(priorities))
        for key, value in overrides.items():
            setattr(rep, key, value)
        return rep
    return _make


@pytest.fixture
def small_city(make_district, make_rep) -> CityConfig:
    a = make_district("a", population=20000, adjacent=["b"], has_transit_station=True)
    b = make_district("b", population=30000, adjacent=["a", "c"], has_transit_station=True)
    c = make_district("c", population=15000, adjacent=["b"])
    reps = [
        make_rep("rep_a", "a", PoliticalLeaning.PROGRESSIVE, [PolicyCategory.HOUSING]),
        make_rep("rep_b", "b", PoliticalLeaning.MODERATE, [PolicyCategory.TRANSIT]),
        make_rep("rep_c", "c", PoliticalLeaning.CONSERVATIVE, [PolicyCategory.BUDGET]),
    ]
    rail = create_transit_line("line_ab", "A-B Rail", TransitType.RAIL, ["a", "b"], 5000.0)
    return create_city(
        id="test_city",
        name="Test City",
        districts=[a, b, c],
        representatives=reps,
        transit_lines=[rail],
        budget=Budget(balance=50000.0, tax_rate=0.1, transit_subsidy=0.4),
        initial_metrics=CityMetrics(total_population=65000, housing_supply=20000, housing_demand=28600),
        election_interval=4,
    )


@pytest.fixture
def state(small_city) -> GameState:
    city = copy.deepcopy(small_city)
    game_state = GameState(
        city=city,
        mode=GameMode.POLITICAL,
        metrics=copy.deepcopy(city.initial_metrics),
    )
    for district in game_state.districts.values():
        update_district_density(district)
    initialize_road_loads(game_state)
    return game_state


@pytest.fixture
def engine(small_city) -> SimulationEngine:
    return SimulationEngine(small_city)


@pytest.fixture
def sandbox_engine(small_city) -> SimulationEngine:
    return SimulationEngine(small_city, mode=GameMode.SANDBOX)
