"""Zoning system dynamics module.

Converts each district's zone mix into population capacity, job counts and
a target rent. Actual rent follows the target with exponential damping so
the rent -> migration -> density loop settles instead of resonating.
"""

import math
from dataclasses import dataclass
from typing import Optional

from citysim.core.state import (
    CityMetrics,
    District,
    GameState,
    ZONE_TOTAL_TOLERANCE,
    ZoneAllocation,
    ZoneType,
    zone_total,
)


# Population density per sq km for each zone type
DENSITY_YIELDS: dict[ZoneType, float] = {
    ZoneType.LOW_DENSITY_RESIDENTIAL: 3000.0,
    ZoneType.MID_DENSITY_RESIDENTIAL: 10000.0,
    ZoneType.HIGH_DENSITY_RESIDENTIAL: 25000.0,
    ZoneType.MIXED_USE: 15000.0,
    ZoneType.COMMERCIAL: 2000.0,  # some residential above shops
    ZoneType.INDUSTRIAL: 500.0,
    ZoneType.TRANSIT_ORIENTED: 20000.0,
    ZoneType.PARK: 0.0,
}

# Job density per sq km for each zone type
JOB_YIELDS: dict[ZoneType, float] = {
    ZoneType.LOW_DENSITY_RESIDENTIAL: 500.0,
    ZoneType.MID_DENSITY_RESIDENTIAL: 2000.0,
    ZoneType.HIGH_DENSITY_RESIDENTIAL: 5000.0,
    ZoneType.MIXED_USE: 8000.0,
    ZoneType.COMMERCIAL: 15000.0,
    ZoneType.INDUSTRIAL: 6000.0,
    ZoneType.TRANSIT_ORIENTED: 10000.0,
    ZoneType.PARK: 100.0,
}

# Rent multiplier by zone type (base = 1.0)
RENT_MULTIPLIERS: dict[ZoneType, float] = {
    ZoneType.LOW_DENSITY_RESIDENTIAL: 1.3,
    ZoneType.MID_DENSITY_RESIDENTIAL: 1.0,
    ZoneType.HIGH_DENSITY_RESIDENTIAL: 0.85,
    ZoneType.MIXED_USE: 0.9,
    ZoneType.COMMERCIAL: 1.1,
    ZoneType.INDUSTRIAL: 0.7,
    ZoneType.TRANSIT_ORIENTED: 0.8,
    ZoneType.PARK: 1.2,  # parks raise nearby values
}

PERSONS_PER_UNIT: float = 2.5

# Bounds on the demand/supply ratio fed into rent
MIN_DEMAND_PRESSURE: float = 0.5
MAX_DEMAND_PRESSURE: float = 2.0
# Ratio used when the city has no housing supply at all
NO_SUPPLY_PRESSURE: float = 2.0

TRANSIT_RENT_DISCOUNT: float = 0.95
NO_TRANSIT_RENT_PREMIUM: float = 1.05
# Rent reduction at full density
MAX_DENSITY_RENT_DISCOUNT: float = 0.15

BASE_RENT: float = 1200.0
MEDIAN_INCOME: float = 50000.0
RENT_DAMPING: float = 0.08


@dataclass
class ZoningChangeResult:
    success: bool
    error: Optional[str] = None


def calculate_zoning_capacity(district: District) -> float:
    """Population capacity from the zone mix, capped by max density."""
    capacity: float = 0.0
    for zone, pct in district.zones.items():
        zone_area: float = district.area * pct / 100.0
        capacity += zone_area * DENSITY_YIELDS.get(zone, 0.0)
    return min(capacity, district.capacity_cap)


def calculate_district_jobs(district: District) -> float:
    """Job capacity from the zone mix."""
    jobs: float = 0.0
    for zone, pct in district.zones.items():
        zone_area: float = district.area * pct / 100.0
        jobs += zone_area * JOB_YIELDS.get(zone, 0.0)
    return jobs


def calculate_housing_supply(districts) -> int:
    """Housing units across *districts* at PERSONS_PER_UNIT people per unit."""
    total_capacity: float = sum(calculate_zoning_capacity(d) for d in districts)
    return int(total_capacity // PERSONS_PER_UNIT)


def calculate_job_capacity(districts) -> int:
    return int(sum(calculate_district_jobs(d) for d in districts))


def calculate_target_rent(
    district: District,
    base_rent: float,
    metrics: CityMetrics,
) -> float:
    """Rent the district would settle at under current conditions.

    Blends the zone-mix multiplier, a bounded supply/demand pressure,
    a transit-access discount and a density discount.
    """
    weighted: float = 0.0
    total_weight: float = 0.0
    for zone, pct in district.zones.items():
        if pct <= 0:
            continue
        weighted += RENT_MULTIPLIERS.get(zone, 1.0) * pct
        total_weight += pct
    zone_multiplier: float = weighted / total_weight if total_weight > 0 else 1.0

    if metrics.housing_supply > 0:
        ratio: float = metrics.housing_demand / metrics.housing_supply
    else:
        ratio = NO_SUPPLY_PRESSURE
    demand_pressure: float = max(MIN_DEMAND_PRESSURE, min(MAX_DEMAND_PRESSURE, ratio))

    transit_factor: float = (
        TRANSIT_RENT_DISCOUNT if district.has_transit_station else NO_TRANSIT_RENT_PREMIUM
    )
    density_factor: float = 1.0 - min(district.density_ratio, 1.0) * MAX_DENSITY_RENT_DISCOUNT

    return base_rent * zone_multiplier * demand_pressure * transit_factor * density_factor


def calculate_rent_burden(rent: float, median_income: float) -> float:
    """Annual rent as a fraction of income, capped at 1."""
    return min(1.0, max(0.0, rent * 12.0 / max(median_income, 1.0)))


def update_district_density(district: District) -> None:
    district.current_density = (
        district.population / district.area if district.area > 0 else 0.0
    )


def apply_zoning_change(district: District, new_zones: dict) -> ZoningChangeResult:
    """Merge *new_zones* into the district's allocation if it still sums to 100%.

    Never raises; an invalid request leaves the district untouched.
    """
    merged: ZoneAllocation = dict(district.zones)
    for key, pct in new_zones.items():
        try:
            zone = ZoneType(key)
        except (TypeError, ValueError):
            return ZoningChangeResult(False, f"Unknown zone type: {key!r}")
        try:
            value = float(pct)
        except (TypeError, ValueError):
            return ZoningChangeResult(False, f"Zone {zone.value}: not a number: {pct!r}")
        if not math.isfinite(value) or value < 0:
            return ZoningChangeResult(False, f"Zone {zone.value}: must be a finite percentage >= 0, got {pct!r}")
        merged[zone] = value

    total: float = zone_total(merged)
    if abs(total - 100.0) > ZONE_TOTAL_TOLERANCE:
        return ZoningChangeResult(
            False, f"Zone allocations must sum to 100%, got {total:.1f}%"
        )

    district.zones = merged
    return ZoningChangeResult(True)


def update_zoning(state: GameState, params: dict) -> None:
    """Advance the zoning model by one turn.

    Steps:
        1. Recompute densities from population.
        2. Move each district's rent toward its target (damped).
        3. Recompute rent burden from the damped rent.
        4. Refresh city housing supply, job totals and average rent.

    All mutations happen in-place on *state*.
    """
    base_rent: float = params.get("base_rent", BASE_RENT)
    median_income: float = params.get("median_income", MEDIAN_INCOME)
    alpha: float = params.get("rent_damping", RENT_DAMPING)
    districts = list(state.districts.values())
    metrics: CityMetrics = state.metrics

    # ----- 1. Densities -----
    for district in districts:
        update_district_density(district)

    # ----- 2-3. Rent and rent burden -----
    for district in districts:
        target: float = calculate_target_rent(district, base_rent, metrics)
        district.metrics.average_rent = (
            district.metrics.average_rent * (1.0 - alpha) + target * alpha
        )
        district.metrics.rent_burden = calculate_rent_burden(
            district.metrics.average_rent, median_income
        )

    # ----- 4. City aggregates -----
    metrics.housing_supply = calculate_housing_supply(districts)
    metrics.jobs_total = calculate_job_capacity(districts)

    total_pop: int = sum(d.population for d in districts)
    if total_pop > 0:
        metrics.average_rent = (
            sum(d.metrics.average_rent * d.population for d in districts) / total_pop
        )
