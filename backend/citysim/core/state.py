"""Simulation state data structures."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from citysim.core.config import GameMode
from citysim.core.metrics import CityMetric, MetricId, parse_metric

logger = logging.getLogger(__name__)


# Tolerance for zone allocations summing to 100%
ZONE_TOTAL_TOLERANCE: float = 0.1


class ZoneType(str, Enum):
    LOW_DENSITY_RESIDENTIAL = "low_density_residential"
    MID_DENSITY_RESIDENTIAL = "mid_density_residential"
    HIGH_DENSITY_RESIDENTIAL = "high_density_residential"
    MIXED_USE = "mixed_use"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    TRANSIT_ORIENTED = "transit_oriented"
    PARK = "park"


class PoliticalLeaning(str, Enum):
    PROGRESSIVE = "progressive"
    MODERATE = "moderate"
    CONSERVATIVE = "conservative"
    NIMBY = "nimby"
    YIMBY = "yimby"
    POPULIST = "populist"


class VoteRequirement(str, Enum):
    SIMPLE_MAJORITY = "simple_majority"  # > 50%
    SUPER_MAJORITY = "super_majority"  # >= 2/3
    EXECUTIVE_ORDER = "executive_order"  # no vote needed
    REFERENDUM = "referendum"  # population-weighted


class PolicyCategory(str, Enum):
    ZONING = "zoning"
    TRANSIT = "transit"
    CONGESTION_PRICING = "congestion_pricing"
    HOUSING = "housing"
    BUDGET = "budget"
    INFRASTRUCTURE = "infrastructure"
    TAXATION = "taxation"


class TransitType(str, Enum):
    BUS = "bus"
    RAIL = "rail"


class TargetKind(str, Enum):
    DISTRICT = "district"
    DISTRICTS = "districts"
    CITY = "city"
    ADJACENT = "adjacent"  # neighbours of a district, half magnitude


ZoneAllocation = dict[ZoneType, float]


def empty_zones() -> ZoneAllocation:
    """Allocation with every zone kind present at 0%."""
    return {zone: 0.0 for zone in ZoneType}


def zone_total(zones: ZoneAllocation) -> float:
    return float(sum(zones.values()))


@dataclass
class DistrictMetrics:
    """Per-district metrics. All bar rent, commute and property value are [0, 1]."""

    average_commute_minutes: float = 30.0
    average_rent: float = 1500.0  # monthly
    rent_burden: float = 0.35
    job_access_score: float = 0.5
    traffic_congestion: float = 0.5
    public_service_satisfaction: float = 0.5
    happiness: float = 0.5
    property_value: float = 1.0  # relative index
    crime_rate: float = 0.2
    green_space_access: float = 0.4


@dataclass
class District:
    """A city district: population, land use, adjacency and metrics."""

    id: str
    name: str
    population: int = 0
    area: float = 1.0  # sq km
    zones: ZoneAllocation = field(default_factory=empty_zones)
    max_density: float = 10000.0  # people per sq km cap
    current_density: float = 0.0
    metrics: DistrictMetrics = field(default_factory=DistrictMetrics)
    adjacent_districts: list[str] = field(default_factory=list)
    has_transit_station: bool = False
    transit_lines: list[str] = field(default_factory=list)
    parking_minimum: float = 1.0  # spaces per unit, 0 = no minimum

    @property
    def capacity_cap(self) -> float:
        """Maximum population allowed by the density cap."""
        return self.max_density * self.area

    @property
    def density_ratio(self) -> float:
        return self.current_density / max(self.max_density, 1.0)


def road_key(a: str, b: str) -> tuple[str, str]:
    """Unordered district-pair key for a road segment."""
    return (a, b) if a <= b else (b, a)


@dataclass
class RoadNetwork:
    """Per-segment road capacity and persistent load."""

    capacities: dict[tuple[str, str], float] = field(default_factory=dict)
    loads: dict[tuple[str, str], float] = field(default_factory=dict)


@dataclass
class TransitLine:
    id: str
    name: str
    type: TransitType
    districts: list[str]  # ordered stops
    capacity: float  # passengers per hour
    ridership: float = 0.0
    operating_cost: float = 0.0  # per turn
    construction_turns_remaining: int = 0  # 0 = operational
    property_value_boost: float = 1.0

    @property
    def operational(self) -> bool:
        return self.construction_turns_remaining == 0


@dataclass
class VoteRecord:
    policy_id: str
    turn: int
    voted_yes: bool


@dataclass
class Representative:
    """Elected representative of exactly one district."""

    id: str
    name: str
    district_id: str
    leaning: PoliticalLeaning
    approval_rating: float = 0.55
    re_election_risk: float = 0.25
    priorities: list[PolicyCategory] = field(default_factory=list)  # top 3
    vote_history: list[VoteRecord] = field(default_factory=list)
    term_number: int = 1


@dataclass(frozen=True)
class EffectTarget:
    """Scope a policy effect acts on."""

    kind: TargetKind
    district_ids: tuple[str, ...] = ()

    @classmethod
    def district(cls, district_id: str) -> "EffectTarget":
        return cls(TargetKind.DISTRICT, (district_id,))

    @classmethod
    def districts(cls, district_ids) -> "EffectTarget":
        return cls(TargetKind.DISTRICTS, tuple(district_ids))

    @classmethod
    def city(cls) -> "EffectTarget":
        return cls(TargetKind.CITY)

    @classmethod
    def adjacent(cls, district_id: str) -> "EffectTarget":
        return cls(TargetKind.ADJACENT, (district_id,))


@dataclass
class PolicyEffect:
    """Delayed, duration-scoped metric delta carried by a policy."""

    target: EffectTarget
    metric: MetricId
    delta: float
    delay: int = 0  # turns until the effect kicks in
    duration: int = 0  # turns the effect lasts, 0 = permanent
    condition: Optional[str] = None

    def __post_init__(self):
        self.metric = parse_metric(self.metric)
        if self.target.kind != TargetKind.CITY and isinstance(self.metric, CityMetric):
            raise ValueError(
                f"City metric {self.metric.value!r} can only target the whole city"
            )
        if self.delay < 0 or self.duration < 0:
            raise ValueError("delay and duration must be >= 0")


@dataclass
class PolicyProposal:
    id: str
    name: str
    category: PolicyCategory
    vote_requirement: VoteRequirement
    cost: float  # budget impact, negative = revenue
    political_cost: float  # how controversial, 0-1
    target_districts: Union[str, list[str]] = "all"
    effects: list[PolicyEffect] = field(default_factory=list)
    description: str = ""

    def targets(self, district_id: str) -> bool:
        return self.target_districts == "all" or district_id in self.target_districts

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if valid."""
        errors = []
        if not 0.0 <= self.political_cost <= 1.0:
            errors.append(f"political_cost must be 0-1, got {self.political_cost}")
        if self.target_districts != "all" and not isinstance(self.target_districts, list):
            errors.append("target_districts must be 'all' or a list of district ids")
        return errors


@dataclass
class ActiveEffect:
    policy_id: str
    effect: PolicyEffect
    turns_remaining: int  # -1 = permanent
    turns_until_active: int
    started: bool = False

    @property
    def permanent(self) -> bool:
        return self.turns_remaining < 0


@dataclass
class PassedPolicy:
    policy: PolicyProposal
    turn_passed: int
    votes_for: int
    votes_against: int


@dataclass
class Budget:
    balance: float = 0.0
    income_per_turn: float = 0.0
    expenses_per_turn: float = 0.0
    tax_rate: float = 0.1  # 0-1
    transit_subsidy: float = 0.3  # fraction of transit cost covered


@dataclass
class CityMetrics:
    total_population: int = 0
    average_commute: float = 0.0
    average_rent: float = 0.0
    overall_happiness: float = 0.5
    congestion_index: float = 0.0  # 0-1
    transit_ridership: float = 0.0
    budget_health: float = 0.5  # 0-1
    housing_supply: int = 0  # units
    housing_demand: int = 0  # units
    jobs_total: int = 0
    economic_output: float = 0.0


@dataclass
class ScenarioGoal:
    """City-metric threshold; every goal met at once ends the game in a win."""

    metric: CityMetric
    target: float
    comparison: str  # "above" or "below"
    label: str = ""

    def __post_init__(self):
        self.metric = CityMetric(self.metric)
        if self.comparison not in ("above", "below"):
            raise ValueError(f"comparison must be 'above' or 'below', got {self.comparison!r}")

    def is_met(self, metrics: CityMetrics) -> bool:
        value: float = getattr(metrics, self.metric.value)
        if self.comparison == "above":
            return value >= self.target
        return value <= self.target


@dataclass
class CityConfig:
    """Immutable template of a city, deep-copied into engine state."""

    id: str
    name: str
    districts: dict[str, District]
    representatives: dict[str, Representative]  # keyed by district id
    transit_lines: list[TransitLine]
    road_network: RoadNetwork
    budget: Budget
    initial_metrics: CityMetrics
    election_interval: int = 8
    scenario_goals: list[ScenarioGoal] = field(default_factory=list)
    country: str = ""
    description: str = ""

    def __post_init__(self):
        if self.election_interval < 1:
            raise ValueError(f"election_interval must be >= 1, got {self.election_interval}")


@dataclass
class GameState:
    """Engine-owned world state passed explicitly to every subsystem."""

    city: CityConfig
    mode: GameMode
    metrics: CityMetrics
    turn: int = 0
    active_effects: list[ActiveEffect] = field(default_factory=list)
    policy_history: list[PassedPolicy] = field(default_factory=list)
    election_log: list = field(default_factory=list)
    metrics_history: list[dict] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    last_vote_result: Optional[object] = None
    game_over: bool = False
    game_over_reason: Optional[str] = None

    @property
    def districts(self) -> dict[str, District]:
        return self.city.districts

    @property
    def representatives(self) -> dict[str, Representative]:
        return self.city.representatives

    @property
    def budget(self) -> Budget:
        return self.city.budget


def report_diagnostic(state: GameState, message: str) -> None:
    """Record a non-fatal problem found during a tick (e.g. a dangling id)."""
    state.diagnostics.append(message)
    logger.warning("Turn %d: %s", state.turn, message)
