"""Closed set of metric identifiers that policy effects may target.

District and city metrics are separate enums. Each has an explicit dispatch
table from identifier to the attribute it reads and writes, plus the subset
that is a [0, 1] ratio and is clamped after every change.
"""

from enum import Enum
from typing import Union

import numpy as np


class UnknownMetricError(ValueError):
    """Raised when a policy effect names a metric outside the known set."""


class DistrictMetric(str, Enum):
    AVERAGE_COMMUTE_MINUTES = "average_commute_minutes"
    AVERAGE_RENT = "average_rent"
    RENT_BURDEN = "rent_burden"
    JOB_ACCESS_SCORE = "job_access_score"
    TRAFFIC_CONGESTION = "traffic_congestion"
    PUBLIC_SERVICE_SATISFACTION = "public_service_satisfaction"
    HAPPINESS = "happiness"
    PROPERTY_VALUE = "property_value"
    CRIME_RATE = "crime_rate"
    GREEN_SPACE_ACCESS = "green_space_access"


class CityMetric(str, Enum):
    TOTAL_POPULATION = "total_population"
    AVERAGE_COMMUTE = "average_commute"
    AVERAGE_RENT = "average_rent"
    OVERALL_HAPPINESS = "overall_happiness"
    CONGESTION_INDEX = "congestion_index"
    TRANSIT_RIDERSHIP = "transit_ridership"
    BUDGET_HEALTH = "budget_health"
    HOUSING_SUPPLY = "housing_supply"
    HOUSING_DEMAND = "housing_demand"
    JOBS_TOTAL = "jobs_total"
    ECONOMIC_OUTPUT = "economic_output"


MetricId = Union[DistrictMetric, CityMetric]

DISTRICT_METRIC_FIELDS: dict[DistrictMetric, str] = {
    DistrictMetric.AVERAGE_COMMUTE_MINUTES: "average_commute_minutes",
    DistrictMetric.AVERAGE_RENT: "average_rent",
    DistrictMetric.RENT_BURDEN: "rent_burden",
    DistrictMetric.JOB_ACCESS_SCORE: "job_access_score",
    DistrictMetric.TRAFFIC_CONGESTION: "traffic_congestion",
    DistrictMetric.PUBLIC_SERVICE_SATISFACTION: "public_service_satisfaction",
    DistrictMetric.HAPPINESS: "happiness",
    DistrictMetric.PROPERTY_VALUE: "property_value",
    DistrictMetric.CRIME_RATE: "crime_rate",
    DistrictMetric.GREEN_SPACE_ACCESS: "green_space_access",
}

CITY_METRIC_FIELDS: dict[CityMetric, str] = {
    CityMetric.TOTAL_POPULATION: "total_population",
    CityMetric.AVERAGE_COMMUTE: "average_commute",
    CityMetric.AVERAGE_RENT: "average_rent",
    CityMetric.OVERALL_HAPPINESS: "overall_happiness",
    CityMetric.CONGESTION_INDEX: "congestion_index",
    CityMetric.TRANSIT_RIDERSHIP: "transit_ridership",
    CityMetric.BUDGET_HEALTH: "budget_health",
    CityMetric.HOUSING_SUPPLY: "housing_supply",
    CityMetric.HOUSING_DEMAND: "housing_demand",
    CityMetric.JOBS_TOTAL: "jobs_total",
    CityMetric.ECONOMIC_OUTPUT: "economic_output",
}

DISTRICT_RATIO_METRICS: frozenset = frozenset({
    DistrictMetric.RENT_BURDEN,
    DistrictMetric.JOB_ACCESS_SCORE,
    DistrictMetric.TRAFFIC_CONGESTION,
    DistrictMetric.PUBLIC_SERVICE_SATISFACTION,
    DistrictMetric.HAPPINESS,
    DistrictMetric.CRIME_RATE,
    DistrictMetric.GREEN_SPACE_ACCESS,
})

CITY_RATIO_METRICS: frozenset = frozenset({
    CityMetric.OVERALL_HAPPINESS,
    CityMetric.CONGESTION_INDEX,
    CityMetric.BUDGET_HEALTH,
})


def parse_metric(name: Union[str, DistrictMetric, CityMetric]) -> MetricId:
    """Resolve a metric name to its identifier.

    District metrics win when a name exists at both levels
    (``average_rent``); pass a ``CityMetric`` explicitly to target the
    city-wide aggregate.
    """
    if isinstance(name, (DistrictMetric, CityMetric)):
        return name
    try:
        return DistrictMetric(name)
    except ValueError:
        pass
    try:
        return CityMetric(name)
    except ValueError:
        raise UnknownMetricError(f"Unknown metric: {name!r}") from None


def adjust_district_metric(metrics, metric: DistrictMetric, delta: float) -> None:
    """Add *delta* to one district metric, clamping ratio metrics to [0, 1]."""
    attr: str = DISTRICT_METRIC_FIELDS[metric]
    value: float = getattr(metrics, attr) + delta
    if metric in DISTRICT_RATIO_METRICS:
        value = float(np.clip(value, 0.0, 1.0))
    setattr(metrics, attr, value)


def adjust_city_metric(metrics, metric: CityMetric, delta: float) -> None:
    """Add *delta* to one city metric, clamping ratio metrics to [0, 1]."""
    attr: str = CITY_METRIC_FIELDS[metric]
    value: float = getattr(metrics, attr) + delta
    if metric in CITY_RATIO_METRICS:
        value = float(np.clip(value, 0.0, 1.0))
    setattr(metrics, attr, value)


def clamp_district_ratios(metrics) -> None:
    """Force every ratio-typed district metric into [0, 1]."""
    for metric in DISTRICT_RATIO_METRICS:
        attr: str = DISTRICT_METRIC_FIELDS[metric]
        setattr(metrics, attr, float(np.clip(getattr(metrics, attr), 0.0, 1.0)))
