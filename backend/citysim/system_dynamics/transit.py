"""Transit system dynamics module.

Advances construction countdowns, converges ridership toward a
density-driven target and raises property values when a line opens.
Operating cost is returned to the caller rather than charged here, so the
budget sees it exactly once per turn through the economy module.
"""

import logging

from citysim.core.events import EventKind, GameEvent, Severity
from citysim.core.state import (
    District,
    GameState,
    TransitLine,
    TransitType,
    report_diagnostic,
)

logger = logging.getLogger(__name__)


RAIL_PROPERTY_BOOST: float = 0.15
BUS_PROPERTY_BOOST: float = 0.03
# Average density (people per sq km) at which rail runs at its base load
RAIL_DENSITY_THRESHOLD: float = 8000.0
# Buses break even at half the rail threshold and never drop below this factor
BUS_MIN_DENSITY_FACTOR: float = 0.3
TARGET_LOAD_FACTOR: float = 0.6
MAX_RIDERSHIP_RATIO: float = 1.2
RIDERSHIP_DAMPING: float = 0.1

DEFAULT_FARE_PER_RIDER: float = 2.5
COST_EFFECTIVE_RATIO: float = 0.5


def calculate_target_ridership(line: TransitLine, districts: dict[str, District]) -> float:
    """Riders the line would carry at equilibrium, capped at 1.2x capacity."""
    densities: list[float] = [
        districts[d].current_density for d in line.districts if d in districts
    ]
    if not densities:
        return 0.0

    avg_density: float = sum(densities) / len(densities)
    if line.type == TransitType.RAIL:
        density_factor: float = max(0.0, avg_density / RAIL_DENSITY_THRESHOLD)
    else:
        density_factor = max(BUS_MIN_DENSITY_FACTOR, avg_density / (RAIL_DENSITY_THRESHOLD / 2.0))

    return min(
        line.capacity * density_factor * TARGET_LOAD_FACTOR,
        line.capacity * MAX_RIDERSHIP_RATIO,
    )


def calculate_ridership(
    line: TransitLine,
    districts: dict[str, District],
    alpha: float = RIDERSHIP_DAMPING,
) -> float:
    """Next-turn ridership: zero while under construction, else damped toward target."""
    if not line.operational:
        return 0.0
    if not any(d in districts for d in line.districts):
        return 0.0
    target: float = calculate_target_ridership(line, districts)
    ridership: float = line.ridership * (1.0 - alpha) + target * alpha
    ridership = min(ridership, line.capacity * MAX_RIDERSHIP_RATIO)
    return float(max(0, round(ridership)))


def is_transit_cost_effective(
    line: TransitLine,
    fare_per_rider: float = DEFAULT_FARE_PER_RIDER,
) -> tuple[bool, float]:
    """Return (cost_effective, fare revenue / operating cost)."""
    revenue: float = line.ridership * fare_per_rider
    ratio: float = revenue / line.operating_cost if line.operating_cost > 0 else 0.0
    return ratio >= COST_EFFECTIVE_RATIO, ratio


def plan_transit_line(
    line_id: str,
    name: str,
    transit_type: TransitType,
    district_ids: list[str],
    capacity: float,
) -> TransitLine:
    """A newly commissioned line, still under construction."""
    is_rail: bool = transit_type == TransitType.RAIL
    return TransitLine(
        id=line_id,
        name=name,
        type=transit_type,
        districts=list(district_ids),
        capacity=capacity,
        ridership=0.0,
        operating_cost=capacity * (0.02 if is_rail else 0.008),
        construction_turns_remaining=(
            4 + len(district_ids) if is_rail else 1 + len(district_ids) // 3
        ),
        property_value_boost=1.0 if is_rail else 0.3,
    )


def apply_opening_property_boost(line: TransitLine, districts: dict[str, District]) -> None:
    """One-time property-value lift for every district the line serves."""
    boost: float = RAIL_PROPERTY_BOOST if line.type == TransitType.RAIL else BUS_PROPERTY_BOOST
    for district_id in line.districts:
        district = districts.get(district_id)
        if district is not None:
            district.metrics.property_value += boost * line.property_value_boost
            district.has_transit_station = True


def progress_construction(state: GameState) -> list[GameEvent]:
    """Count every line under construction down by one turn.

    A line reaching zero opens on this turn: it emits a milestone event and
    applies its property boost. Lines already at zero are left alone, so the
    opening happens exactly once.
    """
    events: list[GameEvent] = []
    for line in state.city.transit_lines:
        if line.construction_turns_remaining <= 0:
            continue
        line.construction_turns_remaining -= 1
        if line.construction_turns_remaining == 0:
            apply_opening_property_boost(line, state.districts)
            logger.info("Turn %d: transit line %s opened", state.turn, line.id)
            events.append(GameEvent(
                kind=EventKind.MILESTONE,
                message=f"{line.name} ({line.type.value}) is now operational!",
                severity=Severity.INFO,
            ))
    return events


def update_transit(state: GameState, params: dict) -> tuple[list[GameEvent], float]:
    """Advance transit dynamics by one turn.

    Steps:
        1. Progress construction; open lines that reach zero.
        2. Update ridership (zero under construction, damped otherwise).
        3. Aggregate city ridership.
        4. Refresh each district's operational line list and station flag.
        5. Sum operating cost of operational lines.

    Returns
    -------
    tuple[list[GameEvent], float]
        Events raised this turn and the operating cost for the budget.
    """
    alpha: float = params.get("ridership_damping", RIDERSHIP_DAMPING)
    districts: dict[str, District] = state.districts
    lines: list[TransitLine] = state.city.transit_lines

    # ----- 1. Construction -----
    events: list[GameEvent] = progress_construction(state)

    # ----- 2. Ridership -----
    for line in lines:
        missing = [d for d in line.districts if d not in districts]
        if missing:
            report_diagnostic(state, f"Transit line {line.id} serves unknown districts {missing}")
        line.ridership = calculate_ridership(line, districts, alpha)

    # ----- 3. City ridership -----
    state.metrics.transit_ridership = sum(line.ridership for line in lines)

    # ----- 4. District access -----
    for district in districts.values():
        district.transit_lines = [
            line.id for line in lines
            if line.operational and district.id in line.districts
        ]
        district.has_transit_station = bool(district.transit_lines)

    # ----- 5. Operating cost -----
    transit_cost: float = sum(line.operating_cost for line in lines if line.operational)
    return events, transit_cost
