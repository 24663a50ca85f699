"""Economy and population system dynamics module.

Derives happiness and job access from district conditions, moves people
between adjacent districts, grows population into spare capacity and
settles the city budget for the turn.
"""

import logging
import math

import numpy as np

from citysim.core.events import EventKind, GameEvent, PopulationMove, Severity
from citysim.core.state import Budget, CityMetrics, District, GameState, ZoneType
from citysim.policy.effects import apply_active_effects

logger = logging.getLogger(__name__)


HAPPINESS_WEIGHTS: dict[str, float] = {
    "commute": 0.25,
    "rent": 0.25,
    "jobs": 0.15,
    "traffic": 0.15,
    "services": 0.10,
    "green": 0.10,
}
# Commute at which the commute score bottoms out
MAX_TOLERABLE_COMMUTE: float = 60.0
HAPPINESS_DAMPING: float = 0.12

# Zone kinds that host jobs for the job-access estimate
JOB_ZONES: tuple = (
    ZoneType.MIXED_USE,
    ZoneType.COMMERCIAL,
    ZoneType.INDUSTRIAL,
    ZoneType.TRANSIT_ORIENTED,
)
JOBS_PER_RESIDENT_IN_JOB_ZONES: float = 0.5
TRANSIT_JOB_ACCESS: float = 0.8
ROAD_JOB_ACCESS: float = 0.5
# Share of all city jobs that counts as full access
FULL_ACCESS_JOB_SHARE: float = 0.3

ATTRACTIVENESS_WEIGHTS: dict[str, float] = {
    "happiness": 0.4,
    "rent": 0.3,
    "jobs": 0.3,
}
MIGRATION_RATE: float = 0.008
MIGRATION_MARGIN: float = 0.08
# Share of a destination's spare room one move may fill
MIGRATION_ROOM_SHARE: float = 0.02
MIGRATION_EVENT_THRESHOLD: int = 500

NATURAL_GROWTH_RATE: float = 0.001
GROWTH_ROOM_SHARE: float = 0.02

TAX_PER_CAPITA: float = 0.0012
BASELINE_TAX_RATE: float = 0.1
BASE_SERVICE_EXPENSES: float = 400.0
FARE_RECOVERY_RATIO: float = 0.6
DEFICIT_CRISIS_BALANCE: float = -5000.0
DEFICIT_WARNING_NET: float = -200.0
BANKRUPTCY_BALANCE: float = -10000.0

PERSONS_PER_UNIT: float = 2.5
HOUSING_DEMAND_HEADROOM: float = 1.1
LABOR_FORCE_SHARE: float = 0.6
OUTPUT_PER_WORKER: float = 1.0


def calculate_happiness(district: District) -> float:
    """Target happiness (0-1) as a weighted sum of six component scores."""
    m = district.metrics
    scores: dict[str, float] = {
        "commute": max(0.0, 1.0 - m.average_commute_minutes / MAX_TOLERABLE_COMMUTE),
        "rent": max(0.0, 1.0 - m.rent_burden),
        "jobs": m.job_access_score,
        "traffic": 1.0 - m.traffic_congestion,
        "services": m.public_service_satisfaction,
        "green": m.green_space_access,
    }
    total: float = sum(HAPPINESS_WEIGHTS[k] * scores[k] for k in HAPPINESS_WEIGHTS)
    return float(np.clip(total, 0.0, 1.0))


def estimate_district_jobs(district: District) -> float:
    job_pct: float = sum(district.zones.get(zone, 0.0) for zone in JOB_ZONES)
    return job_pct / 100.0 * district.area * district.current_density * JOBS_PER_RESIDENT_IN_JOB_ZONES


def calculate_job_access(
    district: District,
    districts: dict[str, District],
    total_jobs: float,
) -> float:
    """Share of city jobs reachable from *district*, saturating at FULL_ACCESS_JOB_SHARE."""
    if total_jobs <= 0:
        return 0.0

    reachable: float = estimate_district_jobs(district)
    for adj_id in district.adjacent_districts:
        adj = districts.get(adj_id)
        if adj is None:
            continue
        factor: float = (
            TRANSIT_JOB_ACCESS
            if district.has_transit_station and adj.has_transit_station
            else ROAD_JOB_ACCESS
        )
        reachable += estimate_district_jobs(adj) * factor

    return min(1.0, reachable / (total_jobs * FULL_ACCESS_JOB_SHARE))


def calculate_attractiveness(district: District) -> float:
    m = district.metrics
    return (
        m.happiness * ATTRACTIVENESS_WEIGHTS["happiness"]
        + (1.0 - m.rent_burden) * ATTRACTIVENESS_WEIGHTS["rent"]
        + m.job_access_score * ATTRACTIVENESS_WEIGHTS["jobs"]
    )


def simulate_migration(
    districts: dict[str, District],
    rate: float = MIGRATION_RATE,
    margin: float = MIGRATION_MARGIN,
) -> list[PopulationMove]:
    """Move people toward more attractive neighbours.

    Every district is scored first; moves are then planned against those
    scores and applied together, so no score sees a partial move. Each
    destination's spare room and each source's population are tracked
    while planning so the applied moves can never overfill or go negative.
    """
    scores: dict[str, float] = {
        did: calculate_attractiveness(d) for did, d in districts.items()
    }
    room: dict[str, float] = {
        did: max(0.0, d.capacity_cap - d.population) for did, d in districts.items()
    }
    available: dict[str, int] = {did: d.population for did, d in districts.items()}

    moves: list[PopulationMove] = []
    for did, district in districts.items():
        for adj_id in district.adjacent_districts:
            if adj_id not in districts or adj_id == did:
                continue
            gap: float = scores[adj_id] - scores[did]
            if gap <= margin or room[adj_id] <= 0:
                continue

            migrants: int = math.floor(district.population * rate * gap)
            cap: int = math.floor(room[adj_id] * MIGRATION_ROOM_SHARE)
            count: int = min(migrants, cap, available[did], math.floor(room[adj_id]))
            if count <= 0:
                continue

            room[adj_id] -= count
            available[did] -= count
            moves.append(PopulationMove(source=did, destination=adj_id, count=count))

    for move in moves:
        districts[move.source].population -= move.count
        districts[move.destination].population += move.count
    return moves


def apply_population_growth(
    districts: dict[str, District],
    rate: float = NATURAL_GROWTH_RATE,
) -> None:
    """Natural growth, limited to a small share of each district's spare room."""
    for district in districts.values():
        room: float = district.capacity_cap - district.population
        if room <= 0:
            continue
        growth: int = math.floor(district.population * rate)
        district.population += max(0, min(growth, math.floor(room * GROWTH_ROOM_SHARE)))


def update_budget(
    budget: Budget,
    total_population: int,
    transit_cost: float,
    params: dict,
) -> list[GameEvent]:
    """Book one turn of income and expenses.

    Income scales with population and the tax rate relative to the baseline
    rate. Transit cost is net of subsidy and fare recovery and never
    contributes a negative expense.
    """
    tax_per_capita: float = params.get("tax_per_capita", TAX_PER_CAPITA)
    baseline_tax: float = params.get("baseline_tax_rate", BASELINE_TAX_RATE)
    base_expenses: float = params.get("base_service_expenses", BASE_SERVICE_EXPENSES)
    fare_recovery: float = params.get("fare_recovery_ratio", FARE_RECOVERY_RATIO)
    crisis_balance: float = params.get("deficit_crisis_balance", DEFICIT_CRISIS_BALANCE)
    warning_net: float = params.get("deficit_warning_net", DEFICIT_WARNING_NET)

    budget.income_per_turn = total_population * tax_per_capita * (budget.tax_rate / baseline_tax)

    fare_revenue: float = transit_cost * fare_recovery
    net_transit_cost: float = transit_cost * (1.0 - budget.transit_subsidy) - fare_revenue
    budget.expenses_per_turn = base_expenses + max(0.0, net_transit_cost)

    net: float = budget.income_per_turn - budget.expenses_per_turn
    budget.balance += net

    events: list[GameEvent] = []
    if budget.balance < crisis_balance:
        logger.warning("Budget crisis: balance %.0f", budget.balance)
        events.append(GameEvent(
            kind=EventKind.BUDGET,
            message=(
                f"Budget deficit! Balance: ${budget.balance:.0f}. "
                "Consider raising taxes or cutting services."
            ),
            severity=Severity.CRITICAL,
        ))
    elif net < warning_net:
        events.append(GameEvent(
            kind=EventKind.BUDGET,
            message=f"Running a deficit of ${abs(net):.0f} per turn.",
            severity=Severity.WARNING,
        ))
    return events


def calculate_budget_health(balance: float, bankruptcy_balance: float = BANKRUPTCY_BALANCE) -> float:
    """0.5 at a zero balance, 0 at bankruptcy, 1 at the mirrored surplus."""
    span: float = 2.0 * max(abs(bankruptcy_balance), 1.0)
    return float(np.clip(0.5 + balance / span, 0.0, 1.0))


def update_city_metrics(state: GameState) -> None:
    """Recompute population-weighted city aggregates from district data."""
    districts = list(state.districts.values())
    metrics: CityMetrics = state.metrics
    total_pop: int = sum(d.population for d in districts)
    metrics.total_population = total_pop

    if total_pop <= 0:
        return

    weights = np.array([d.population for d in districts], dtype=float)
    metrics.average_commute = float(np.average(
        [d.metrics.average_commute_minutes for d in districts], weights=weights
    ))
    metrics.overall_happiness = float(np.average(
        [d.metrics.happiness for d in districts], weights=weights
    ))
    metrics.congestion_index = float(np.average(
        [d.metrics.traffic_congestion for d in districts], weights=weights
    ))
    metrics.housing_demand = int(total_pop / PERSONS_PER_UNIT * HOUSING_DEMAND_HEADROOM)

    employed: float = min(metrics.jobs_total, total_pop * LABOR_FORCE_SHARE)
    mean_access: float = float(np.mean([d.metrics.job_access_score for d in districts]))
    metrics.economic_output = employed * OUTPUT_PER_WORKER * (0.5 + 0.5 * mean_access)


def update_economy(
    state: GameState,
    params: dict,
    transit_cost: float,
) -> tuple[list[PopulationMove], list[GameEvent]]:
    """Advance the economy and population model by one turn.

    Steps:
        1. Apply active policy effects.
        2. Damp happiness toward its target.
        3. Recompute job access.
        4. Natural population growth.
        5. Migration between adjacent districts.
        6. City-wide aggregates.
        7. Budget, including the transit cost handed over by the transit module.

    Returns
    -------
    tuple[list[PopulationMove], list[GameEvent]]
        Migration moves applied this turn and the events raised.
    """
    alpha: float = params.get("happiness_damping", HAPPINESS_DAMPING)
    districts: dict[str, District] = state.districts

    # ----- 1. Policy effects -----
    events: list[GameEvent] = apply_active_effects(state)

    # ----- 2. Happiness -----
    for district in districts.values():
        target: float = calculate_happiness(district)
        district.metrics.happiness = float(np.clip(
            district.metrics.happiness * (1.0 - alpha) + target * alpha, 0.0, 1.0
        ))

    # ----- 3. Job access -----
    for district in districts.values():
        district.metrics.job_access_score = calculate_job_access(
            district, districts, state.metrics.jobs_total
        )

    # ----- 4. Growth -----
    apply_population_growth(districts, params.get("natural_growth_rate", NATURAL_GROWTH_RATE))

    # ----- 5. Migration -----
    moves: list[PopulationMove] = simulate_migration(
        districts,
        rate=params.get("migration_rate", MIGRATION_RATE),
        margin=params.get("migration_margin", MIGRATION_MARGIN),
    )
    for move in moves:
        if move.count >= MIGRATION_EVENT_THRESHOLD:
            events.append(GameEvent(
                kind=EventKind.MIGRATION,
                message=(
                    f"{move.count:,} residents moved from "
                    f"{districts[move.source].name} to {districts[move.destination].name}"
                ),
                severity=Severity.INFO,
                district_id=move.destination,
            ))

    # ----- 6. City metrics -----
    update_city_metrics(state)

    # ----- 7. Budget -----
    events.extend(update_budget(
        state.budget, state.metrics.total_population, transit_cost, params
    ))
    state.metrics.budget_health = calculate_budget_health(
        state.budget.balance, params.get("bankruptcy_balance", BANKRUPTCY_BALANCE)
    )
    return moves, events
