"""Policy catalog.

Factories for every proposal the player can put to the council. Each
returns a fresh `PolicyProposal` with its own id; the effects carry the
metric deltas the effect engine applies once the policy passes.
"""

import itertools

from citysim.core.metrics import CityMetric, DistrictMetric
from citysim.core.state import (
    EffectTarget,
    PolicyCategory,
    PolicyEffect,
    PolicyProposal,
    VoteRequirement,
)


_policy_ids = itertools.count(1)

# Congestion pricing multiplier and per-unit revenue
PRICE_LEVELS: dict[str, int] = {"low": 1, "medium": 2, "high": 3}
PRICING_REVENUE_PER_LEVEL: float = 300.0

RAIL_BASE_COST: float = 2000.0
RAIL_COST_PER_STOP: float = 500.0
HOUSING_COST_PER_UNIT: float = 2.0


def next_policy_id() -> str:
    return f"policy_{next(_policy_ids)}"


def _district_effect(
    district_id: str,
    metric: DistrictMetric,
    delta: float,
    delay: int = 0,
    duration: int = 0,
) -> PolicyEffect:
    return PolicyEffect(EffectTarget.district(district_id), metric, delta, delay, duration)


def _city_effect(metric: CityMetric, delta: float, delay: int = 0, duration: int = 0) -> PolicyEffect:
    return PolicyEffect(EffectTarget.city(), metric, delta, delay, duration)


def _per_district(
    district_ids: list[str],
    metric: DistrictMetric,
    delta: float,
    delay: int = 0,
    duration: int = 0,
) -> list[PolicyEffect]:
    return [_district_effect(d, metric, delta, delay, duration) for d in district_ids]


# ---------------------------------------------------------------------------
# Major reforms
# ---------------------------------------------------------------------------

def create_upzone_policy(district_id: str, district_name: str) -> PolicyProposal:
    """Allow higher density in one district."""
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Upzone {district_name}",
        category=PolicyCategory.ZONING,
        vote_requirement=VoteRequirement.SUPER_MAJORITY,
        cost=50,
        political_cost=0.7,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.AVERAGE_RENT, -0.1, delay=3),
            _district_effect(district_id, DistrictMetric.PROPERTY_VALUE, -0.05, delay=1),
            _city_effect(CityMetric.HOUSING_SUPPLY, 500, delay=4),
        ],
        description=(
            f"Allow higher density development in {district_name}. "
            "Increases housing supply but changes neighborhood character."
        ),
    )


def create_bus_route_policy(district_ids: list[str], route_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"New Bus Route: {route_name}",
        category=PolicyCategory.TRANSIT,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=200,
        political_cost=0.2,
        target_districts=list(district_ids),
        effects=_per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, -0.05, delay=1),
        description=(
            f"Establish a new bus route connecting {len(district_ids)} districts. "
            "Quick to deploy, moderate impact."
        ),
    )


def create_rail_line_policy(district_ids: list[str], line_name: str) -> PolicyProposal:
    """Rail is slow to build: congestion relief lands only after six turns."""
    return PolicyProposal(
        id=next_policy_id(),
        name=f"New Rail Line: {line_name}",
        category=PolicyCategory.TRANSIT,
        vote_requirement=VoteRequirement.SUPER_MAJORITY,
        cost=RAIL_BASE_COST + len(district_ids) * RAIL_COST_PER_STOP,
        political_cost=0.5,
        target_districts=list(district_ids),
        effects=(
            _per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, -0.15, delay=6)
            + _per_district(district_ids, DistrictMetric.PROPERTY_VALUE, 0.1, delay=4)
            + [_city_effect(CityMetric.CONGESTION_INDEX, -0.05, delay=6)]
        ),
        description=(
            f"Build a new rail line connecting {len(district_ids)} districts. "
            "Expensive and slow to build, but transformative."
        ),
    )


def create_congestion_pricing_policy(district_ids: list[str], price_level: str) -> PolicyProposal:
    """Charge vehicles entering core districts; *price_level* is low, medium or high."""
    if price_level not in PRICE_LEVELS:
        raise ValueError(f"price_level must be one of {sorted(PRICE_LEVELS)}, got {price_level!r}")
    multiplier: int = PRICE_LEVELS[price_level]
    revenue: float = PRICING_REVENUE_PER_LEVEL * multiplier
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Congestion Pricing ({price_level})",
        category=PolicyCategory.CONGESTION_PRICING,
        vote_requirement=VoteRequirement.SUPER_MAJORITY,
        cost=-revenue,
        political_cost=0.8,
        target_districts=list(district_ids),
        effects=(
            _per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, -0.1 * multiplier, delay=1)
            + [_city_effect(CityMetric.CONGESTION_INDEX, -0.05 * multiplier, delay=1)]
        ),
        description=(
            f"Charge vehicles entering core districts. Level: {price_level}. "
            "Reduces traffic, generates revenue, but politically contentious."
        ),
    )


def create_affordable_housing_policy(district_id: str, units: int) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Affordable Housing ({units} units)",
        category=PolicyCategory.HOUSING,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=units * HOUSING_COST_PER_UNIT,
        political_cost=0.3,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.RENT_BURDEN, -0.05, delay=3),
            _district_effect(district_id, DistrictMetric.HAPPINESS, 0.05, delay=3),
            _city_effect(CityMetric.HOUSING_SUPPLY, units, delay=3),
        ],
        description=f"Build {units} affordable housing units. Reduces rent burden but requires budget.",
    )


def create_reduce_parking_policy(district_id: str, district_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Reduce Parking Minimums: {district_name}",
        category=PolicyCategory.ZONING,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=0,
        political_cost=0.5,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.AVERAGE_RENT, -0.05, delay=2),
            _city_effect(CityMetric.HOUSING_SUPPLY, 200, delay=3),
        ],
        description=(
            "Remove or reduce mandatory parking requirements. Allows more housing, "
            "reduces car dependency, but angers drivers."
        ),
    )


def create_road_expansion_policy(district_ids: list[str]) -> PolicyProposal:
    """Short-lived relief followed by permanent induced demand."""
    return PolicyProposal(
        id=next_policy_id(),
        name="Road Expansion",
        category=PolicyCategory.INFRASTRUCTURE,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=800,
        political_cost=0.3,
        target_districts=list(district_ids),
        effects=(
            _per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, -0.15, delay=2, duration=5)
            + _per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, 0.1, delay=7)
        ),
        description="Widen roads and add lanes. Short-term traffic relief, but induces demand long-term.",
    )


def create_tax_increase_policy(amount: float) -> PolicyProposal:
    """Raise taxes by *amount* (a fraction, e.g. 0.05 for +5%)."""
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Tax Increase (+{amount * 100:.0f}%)",
        category=PolicyCategory.TAXATION,
        vote_requirement=VoteRequirement.SUPER_MAJORITY,
        cost=0,
        political_cost=0.9,
        target_districts="all",
        effects=[
            _city_effect(CityMetric.BUDGET_HEALTH, 0.1, delay=1),
            _city_effect(CityMetric.OVERALL_HAPPINESS, -0.05, duration=3),
        ],
        description="Raise tax rates to fund public services. Unpopular but necessary for ambitious projects.",
    )


# ---------------------------------------------------------------------------
# Early-game policies: cheap, low-risk moves available from turn 1
# ---------------------------------------------------------------------------

def create_bus_lane_policy(district_ids: list[str], corridor_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Bus Lanes: {corridor_name}",
        category=PolicyCategory.TRANSIT,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=30,
        political_cost=0.15,
        target_districts=list(district_ids),
        effects=_per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, -0.03, delay=1),
        description=f"Dedicate bus lanes on {corridor_name}. Costs almost nothing and speeds up buses.",
    )


def create_parking_enforcement_policy(district_ids: list[str]) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name="Parking Enforcement & Metering",
        category=PolicyCategory.INFRASTRUCTURE,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=-150,
        political_cost=0.25,
        target_districts=list(district_ids),
        effects=_per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, -0.02, delay=1),
        description="Meter unmetered lots and enforce existing parking rules. Generates revenue.",
    )


def create_intersection_fix_policy(district_id: str, district_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Fix Intersections: {district_name}",
        category=PolicyCategory.INFRASTRUCTURE,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=80,
        political_cost=0.1,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.TRAFFIC_CONGESTION, -0.04, delay=1),
            _district_effect(district_id, DistrictMetric.PUBLIC_SERVICE_SATISFACTION, 0.03, delay=1),
        ],
        description=f"Upgrade signal timing and turn lanes in {district_name}. Cheap and effective.",
    )


def create_public_services_policy(district_id: str, district_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Improve Services: {district_name}",
        category=PolicyCategory.INFRASTRUCTURE,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=100,
        political_cost=0.05,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.PUBLIC_SERVICE_SATISFACTION, 0.06, delay=1),
            _district_effect(district_id, DistrictMetric.HAPPINESS, 0.02, delay=1),
        ],
        description=f"Better water supply, streetlights and waste collection in {district_name}.",
    )


def create_bus_frequency_policy(district_ids: list[str], route_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"More Buses: {route_name}",
        category=PolicyCategory.TRANSIT,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=120,
        political_cost=0.1,
        target_districts=list(district_ids),
        effects=_per_district(district_ids, DistrictMetric.TRAFFIC_CONGESTION, -0.03),
        description=f"Increase frequency and extend hours on {route_name}.",
    )


def create_green_space_policy(district_id: str, district_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Green Spaces: {district_name}",
        category=PolicyCategory.INFRASTRUCTURE,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=60,
        political_cost=0.05,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.GREEN_SPACE_ACCESS, 0.05, delay=2),
            _district_effect(district_id, DistrictMetric.HAPPINESS, 0.02, delay=2),
            _district_effect(district_id, DistrictMetric.PROPERTY_VALUE, 0.03, delay=3),
        ],
        description=f"Plant trees and create pocket parks in {district_name}.",
    )


def create_pilot_congestion_pricing_policy(district_id: str, district_name: str) -> PolicyProposal:
    """Six-turn pricing trial in a single district."""
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Pilot Congestion Pricing: {district_name}",
        category=PolicyCategory.CONGESTION_PRICING,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=-100,
        political_cost=0.4,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.TRAFFIC_CONGESTION, -0.06, delay=1, duration=6),
        ],
        description=f"Trial of congestion pricing in {district_name} only, at lower rates.",
    )


def create_walkability_policy(district_id: str, district_name: str) -> PolicyProposal:
    return PolicyProposal(
        id=next_policy_id(),
        name=f"Walkability: {district_name}",
        category=PolicyCategory.INFRASTRUCTURE,
        vote_requirement=VoteRequirement.SIMPLE_MAJORITY,
        cost=90,
        political_cost=0.1,
        target_districts=[district_id],
        effects=[
            _district_effect(district_id, DistrictMetric.TRAFFIC_CONGESTION, -0.02, delay=2),
            _district_effect(district_id, DistrictMetric.HAPPINESS, 0.03, delay=2),
            _district_effect(district_id, DistrictMetric.PUBLIC_SERVICE_SATISFACTION, 0.03, delay=2),
        ],
        description=f"Build footpaths and cycling lanes in {district_name}.",
    )
