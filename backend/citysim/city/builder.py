"""City-building helpers.

Construct districts, representatives, road networks, transit lines and
whole city configurations with the defaults the simulation expects.
"""

from typing import Callable, Optional

from citysim.core.state import (
    Budget,
    CityConfig,
    CityMetrics,
    District,
    DistrictMetrics,
    PolicyCategory,
    PoliticalLeaning,
    Representative,
    RoadNetwork,
    ScenarioGoal,
    TransitLine,
    TransitType,
    ZONE_TOTAL_TOLERANCE,
    ZoneType,
    empty_zones,
    road_key,
    zone_total,
)


DEFAULT_ROAD_CAPACITY: float = 5000.0
# Share of capacity an already-running line carries on day one
INITIAL_RIDERSHIP_SHARE: float = 0.4


def create_district(
    id: str,
    name: str,
    population: int,
    area: float,
    max_density: float,
    zones: dict,
    adjacent_districts: list[str],
    has_transit_station: bool = False,
    parking_minimum: float = 1.0,
    metrics: Optional[DistrictMetrics] = None,
) -> District:
    """Create a district with default metrics.

    Zone kinds missing from *zones* are 0%. Raises ValueError when the
    allocation does not sum to 100% or names an unknown zone type.
    """
    allocation = empty_zones()
    for key, pct in zones.items():
        allocation[ZoneType(key)] = float(pct)

    total: float = zone_total(allocation)
    if abs(total - 100.0) > ZONE_TOTAL_TOLERANCE:
        raise ValueError(f"District {id}: zone allocations must sum to 100%, got {total:.1f}%")

    return District(
        id=id,
        name=name,
        population=int(population),
        area=area,
        zones=allocation,
        max_density=max_density,
        current_density=population / area if area > 0 else 0.0,
        metrics=metrics if metrics is not None else DistrictMetrics(),
        adjacent_districts=list(adjacent_districts),
        has_transit_station=has_transit_station,
        parking_minimum=parking_minimum,
    )


def create_representative(
    id: str,
    name: str,
    district_id: str,
    leaning: PoliticalLeaning,
    priorities: list[PolicyCategory],
) -> Representative:
    return Representative(
        id=id,
        name=name,
        district_id=district_id,
        leaning=PoliticalLeaning(leaning),
        priorities=[PolicyCategory(p) for p in priorities],
    )


def build_road_network(
    districts: list[District],
    capacity_fn: Optional[Callable[[str, str], float]] = None,
) -> RoadNetwork:
    """One road segment per adjacent district pair, with zero initial load."""
    road = RoadNetwork()
    for district in districts:
        for adj_id in district.adjacent_districts:
            key = road_key(district.id, adj_id)
            if key in road.capacities:
                continue
            capacity: float = (
                capacity_fn(district.id, adj_id) if capacity_fn else DEFAULT_ROAD_CAPACITY
            )
            road.capacities[key] = capacity
            road.loads[key] = 0.0
    return road


def create_transit_line(
    id: str,
    name: str,
    transit_type: TransitType,
    districts: list[str],
    capacity: float,
    operational: bool = True,
) -> TransitLine:
    """An existing line (running at 40% load) or one still under construction."""
    is_rail: bool = TransitType(transit_type) == TransitType.RAIL
    if operational:
        construction: int = 0
    else:
        construction = 6 if is_rail else 2
    return TransitLine(
        id=id,
        name=name,
        type=TransitType(transit_type),
        districts=list(districts),
        capacity=capacity,
        ridership=capacity * INITIAL_RIDERSHIP_SHARE if operational else 0.0,
        operating_cost=capacity * (0.5 if is_rail else 0.15),
        construction_turns_remaining=construction,
        property_value_boost=1.0 if is_rail else 0.3,
    )


def create_city(
    id: str,
    name: str,
    districts: list[District],
    representatives: list[Representative],
    transit_lines: Optional[list[TransitLine]] = None,
    road_network: Optional[RoadNetwork] = None,
    budget: Optional[Budget] = None,
    initial_metrics: Optional[CityMetrics] = None,
    election_interval: int = 8,
    scenario_goals: Optional[list[ScenarioGoal]] = None,
    country: str = "",
    description: str = "",
) -> CityConfig:
    """Assemble a city configuration.

    Representatives are keyed by the district they sit for; two
    representatives for one district, or a duplicate district id, raise
    ValueError. Without an explicit road network one is built from
    adjacency.
    """
    district_map: dict[str, District] = {}
    for district in districts:
        if district.id in district_map:
            raise ValueError(f"Duplicate district id: {district.id}")
        district_map[district.id] = district

    rep_map: dict[str, Representative] = {}
    for rep in representatives:
        if rep.district_id in rep_map:
            raise ValueError(f"District {rep.district_id} already has a representative")
        rep_map[rep.district_id] = rep

    if election_interval < 1:
        raise ValueError(f"election_interval must be >= 1, got {election_interval}")

    if initial_metrics is None:
        initial_metrics = CityMetrics(total_population=sum(d.population for d in districts))

    return CityConfig(
        id=id,
        name=name,
        districts=district_map,
        representatives=rep_map,
        transit_lines=list(transit_lines or []),
        road_network=road_network if road_network is not None else build_road_network(districts),
        budget=budget if budget is not None else Budget(),
        initial_metrics=initial_metrics,
        election_interval=election_interval,
        scenario_goals=list(scenario_goals or []),
        country=country,
        description=description,
    )
