"""Traffic system dynamics module.

Models road congestion, induced demand and commute times. Road loads are
persistent state: every turn each segment's load moves part of the way
toward a population-derived target instead of being rebuilt from zero.
"""

import numpy as np

from citysim.core.state import (
    District,
    GameState,
    RoadNetwork,
    TransitLine,
    ZoneType,
    report_diagnostic,
    road_key,
)


# Extra demand each unit of road capacity induces
INDUCED_DEMAND_FACTOR: float = 0.15
# Scales induced demand into vehicles per tick
INDUCED_DEMAND_SCALE: float = 0.002
# Vehicles per resident (averaged across both endpoints)
CARS_PER_PERSON: float = 0.015
# Transit absorbs at most this share of a segment's target load
MAX_TRANSIT_ABSORPTION: float = 0.4
TRANSIT_ABSORPTION_RATE: float = 0.3

# Minutes added at full congestion
CONGESTION_COMMUTE_PENALTY: float = 35.0
BASE_COMMUTE_ADJACENT: float = 20.0
# Commute for a district with no reachable neighbours
BASE_COMMUTE_DISTANT: float = 50.0
SELF_CONTAINED_COMMUTE: float = 10.0
# Cap on the fractional commute reduction from transit
TRANSIT_COMMUTE_REDUCTION: float = 0.3
TRANSIT_CAPACITY_FOR_MAX_BENEFIT: float = 15000.0
DENSITY_PROXIMITY_FACTOR: float = 0.12
MIXED_USE_COMMUTE_REDUCTION: float = 0.25

# Capacity assumed for an unknown segment when computing congestion
DEFAULT_SEGMENT_CAPACITY: float = 1000.0

LOAD_DAMPING: float = 0.2
COMMUTE_DAMPING: float = 0.15


def calculate_congestion(road: RoadNetwork, a: str, b: str) -> float:
    """Load over capacity for the segment between *a* and *b*, capped at 1."""
    key = road_key(a, b)
    capacity: float = road.capacities.get(key, DEFAULT_SEGMENT_CAPACITY)
    load: float = road.loads.get(key, 0.0)
    if capacity <= 0:
        return 1.0 if load > 0 else 0.0
    return min(load / capacity, 1.0)


def transit_capacity_between(a: str, b: str, transit_lines: list[TransitLine]) -> float:
    """Operational transit capacity linking two districts, discounted by stop distance."""
    total: float = 0.0
    for line in transit_lines:
        if not line.operational:
            continue
        if a in line.districts and b in line.districts:
            distance: int = abs(line.districts.index(a) - line.districts.index(b))
            total += line.capacity / max(distance, 1)
    return total


def _mixed_use_ratio(district: District) -> float:
    return district.zones.get(ZoneType.MIXED_USE, 0.0) / 100.0


def calculate_target_load(
    a: District,
    b: District,
    capacity: float,
    transit_lines: list[TransitLine],
) -> float:
    """Vehicles the segment between *a* and *b* would carry at equilibrium."""
    target: float = (a.population + b.population) / 2.0 * CARS_PER_PERSON

    # Induced demand: wider roads attract more trips
    target += capacity * INDUCED_DEMAND_FACTOR * INDUCED_DEMAND_SCALE

    transit_cap: float = transit_capacity_between(a.id, b.id, transit_lines)
    target -= min(transit_cap * TRANSIT_ABSORPTION_RATE, target * MAX_TRANSIT_ABSORPTION)

    mixed_use: float = (_mixed_use_ratio(a) + _mixed_use_ratio(b)) / 2.0
    target *= 1.0 - mixed_use * MIXED_USE_COMMUTE_REDUCTION
    return max(0.0, target)


def update_road_loads(state: GameState, params: dict) -> None:
    """Move every segment's load toward its target load (damped, never reset)."""
    alpha: float = params.get("load_damping", LOAD_DAMPING)
    road: RoadNetwork = state.city.road_network
    districts: dict[str, District] = state.districts

    for key, capacity in road.capacities.items():
        a = districts.get(key[0])
        b = districts.get(key[1])
        if a is None or b is None:
            report_diagnostic(state, f"Road segment {key[0]}|{key[1]} references an unknown district")
            continue
        current: float = road.loads.get(key, capacity * 0.5)
        target: float = calculate_target_load(a, b, capacity, state.city.transit_lines)
        road.loads[key] = current * (1.0 - alpha) + target * alpha


def calculate_target_commute(
    district: District,
    districts: dict[str, District],
    road: RoadNetwork,
    transit_lines: list[TransitLine],
) -> float:
    """Commute minutes the district would settle at under current conditions."""
    self_contained: float = _mixed_use_ratio(district) * MIXED_USE_COMMUTE_REDUCTION

    commutes: list[float] = []
    for adj_id in district.adjacent_districts:
        adj = districts.get(adj_id)
        if adj is None:
            continue

        commute: float = BASE_COMMUTE_ADJACENT
        commute += calculate_congestion(road, district.id, adj_id) * CONGESTION_COMMUTE_PENALTY

        transit_cap: float = transit_capacity_between(district.id, adj_id, transit_lines)
        if transit_cap > 0:
            benefit: float = min(
                TRANSIT_COMMUTE_REDUCTION, transit_cap / TRANSIT_CAPACITY_FOR_MAX_BENEFIT
            )
            commute *= 1.0 - benefit

        avg_density_ratio: float = (
            min(district.density_ratio, 1.0) + min(adj.density_ratio, 1.0)
        ) / 2.0
        commute *= 1.0 - avg_density_ratio * DENSITY_PROXIMITY_FACTOR
        commutes.append(commute)

    if not commutes:
        return BASE_COMMUTE_DISTANT

    external: float = float(np.mean(commutes))
    return self_contained * SELF_CONTAINED_COMMUTE + (1.0 - self_contained) * external


def calculate_city_congestion(road: RoadNetwork) -> float:
    """Unweighted mean congestion over every road segment."""
    if not road.capacities:
        return 0.0
    values = [calculate_congestion(road, a, b) for a, b in road.capacities]
    return float(np.mean(values))


def initialize_road_loads(state: GameState) -> None:
    """Seed segment loads from the endpoints' existing congestion values.

    Called once at engine construction so the first turn continues from the
    configured congestion instead of jumping from zero.
    """
    road: RoadNetwork = state.city.road_network
    for key, capacity in road.capacities.items():
        a = state.districts.get(key[0])
        b = state.districts.get(key[1])
        if a is None or b is None:
            continue
        avg_congestion: float = (
            a.metrics.traffic_congestion + b.metrics.traffic_congestion
        ) / 2.0
        road.loads[key] = capacity * avg_congestion


def update_traffic(state: GameState, params: dict) -> None:
    """Advance traffic dynamics by one turn.

    Steps:
        1. Damp every road segment's load toward its target.
        2. Damp each district's commute toward its target commute.
        3. Damp each district's congestion toward the mean of its segments.

    Mutations are in-place on *state*.
    """
    alpha: float = params.get("commute_damping", COMMUTE_DAMPING)
    road: RoadNetwork = state.city.road_network
    districts: dict[str, District] = state.districts

    # ----- 1. Road loads -----
    update_road_loads(state, params)

    for district in districts.values():
        # ----- 2. Commute -----
        target_commute: float = calculate_target_commute(
            district, districts, road, state.city.transit_lines
        )
        district.metrics.average_commute_minutes = (
            district.metrics.average_commute_minutes * (1.0 - alpha)
            + target_commute * alpha
        )

        # ----- 3. Congestion -----
        congestions: list[float] = []
        for adj_id in district.adjacent_districts:
            if adj_id not in districts:
                report_diagnostic(state, f"District {district.id} lists unknown neighbour {adj_id}")
                continue
            congestions.append(calculate_congestion(road, district.id, adj_id))
        target_congestion: float = float(np.mean(congestions)) if congestions else 0.0
        district.metrics.traffic_congestion = float(np.clip(
            district.metrics.traffic_congestion * (1.0 - alpha) + target_congestion * alpha,
            0.0,
            1.0,
        ))
