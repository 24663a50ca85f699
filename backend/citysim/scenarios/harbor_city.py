"""Harbor City scenario.

A fictional five-district port city: a dense downtown ringed by an old
industrial waterfront, a low-rise hillside, a working riverside and
car-dependent northern suburbs. Rents are high, roads are congested and a
rail extension to the suburbs is still under construction.
"""

from citysim.city.builder import (
    build_road_network,
    create_city,
    create_district,
    create_representative,
    create_transit_line,
)
from citysim.core.metrics import CityMetric
from citysim.core.state import (
    Budget,
    CityConfig,
    CityMetrics,
    PolicyCategory,
    PoliticalLeaning,
    ScenarioGoal,
    TransitType,
    ZoneType,
)


DOWNTOWN = "harbor_downtown"
OLD_PORT = "harbor_old_port"
HILLSIDE = "harbor_hillside"
RIVERSIDE = "harbor_riverside"
NORTHGATE = "harbor_northgate"


def _districts():
    downtown = create_district(
        DOWNTOWN, "Downtown (Harbor Front)",
        population=90000, area=6.0, max_density=30000.0,
        zones={
            ZoneType.COMMERCIAL: 35,
            ZoneType.HIGH_DENSITY_RESIDENTIAL: 20,
            ZoneType.MIXED_USE: 20,
            ZoneType.TRANSIT_ORIENTED: 15,
            ZoneType.MID_DENSITY_RESIDENTIAL: 5,
            ZoneType.PARK: 5,
        },
        adjacent_districts=[OLD_PORT, HILLSIDE, RIVERSIDE],
        has_transit_station=True,
        parking_minimum=0.0,
    )
    downtown.metrics.job_access_score = 0.85
    downtown.metrics.rent_burden = 0.48
    downtown.metrics.property_value = 2.4
    downtown.metrics.traffic_congestion = 0.65

    old_port = create_district(
        OLD_PORT, "Old Port",
        population=60000, area=5.0, max_density=20000.0,
        zones={
            ZoneType.MID_DENSITY_RESIDENTIAL: 30,
            ZoneType.MIXED_USE: 25,
            ZoneType.INDUSTRIAL: 20,
            ZoneType.COMMERCIAL: 10,
            ZoneType.LOW_DENSITY_RESIDENTIAL: 10,
            ZoneType.PARK: 5,
        },
        adjacent_districts=[DOWNTOWN, RIVERSIDE],
        has_transit_station=True,
    )
    old_port.metrics.rent_burden = 0.52
    old_port.metrics.crime_rate = 0.3

    hillside = create_district(
        HILLSIDE, "Hillside",
        population=70000, area=14.0, max_density=9000.0,
        zones={
            ZoneType.LOW_DENSITY_RESIDENTIAL: 55,
            ZoneType.MID_DENSITY_RESIDENTIAL: 20,
            ZoneType.COMMERCIAL: 5,
            ZoneType.PARK: 20,
        },
        adjacent_districts=[DOWNTOWN, NORTHGATE],
        parking_minimum=2.0,
    )
    hillside.metrics.property_value = 2.0
    hillside.metrics.green_space_access = 0.7
    hillside.metrics.rent_burden = 0.4

    riverside = create_district(
        RIVERSIDE, "Riverside",
        population=80000, area=10.0, max_density=15000.0,
        zones={
            ZoneType.MID_DENSITY_RESIDENTIAL: 30,
            ZoneType.LOW_DENSITY_RESIDENTIAL: 25,
            ZoneType.INDUSTRIAL: 20,
            ZoneType.COMMERCIAL: 10,
            ZoneType.MIXED_USE: 10,
            ZoneType.PARK: 5,
        },
        adjacent_districts=[DOWNTOWN, OLD_PORT, NORTHGATE],
        has_transit_station=True,
    )
    riverside.metrics.average_commute_minutes = 35.0

    northgate = create_district(
        NORTHGATE, "Northgate (Suburbs)",
        population=100000, area=25.0, max_density=6000.0,
        zones={
            ZoneType.LOW_DENSITY_RESIDENTIAL: 65,
            ZoneType.COMMERCIAL: 10,
            ZoneType.MID_DENSITY_RESIDENTIAL: 10,
            ZoneType.PARK: 15,
        },
        adjacent_districts=[HILLSIDE, RIVERSIDE],
        parking_minimum=2.0,
    )
    northgate.metrics.average_commute_minutes = 48.0
    northgate.metrics.traffic_congestion = 0.55
    northgate.metrics.job_access_score = 0.35

    return [downtown, old_port, hillside, riverside, northgate]


def build_harbor_city() -> CityConfig:
    """Fresh Harbor City configuration; every call returns new objects."""
    districts = _districts()

    representatives = [
        create_representative(
            "rep_harbor_1", "Rep. Ana Duarte", DOWNTOWN, PoliticalLeaning.YIMBY,
            [PolicyCategory.ZONING, PolicyCategory.TRANSIT, PolicyCategory.HOUSING],
        ),
        create_representative(
            "rep_harbor_2", "Rep. Joel Mensah", OLD_PORT, PoliticalLeaning.PROGRESSIVE,
            [PolicyCategory.HOUSING, PolicyCategory.TRANSIT, PolicyCategory.INFRASTRUCTURE],
        ),
        create_representative(
            "rep_harbor_3", "Rep. Claire Whitford", HILLSIDE, PoliticalLeaning.NIMBY,
            [PolicyCategory.INFRASTRUCTURE, PolicyCategory.BUDGET, PolicyCategory.TRANSIT],
        ),
        create_representative(
            "rep_harbor_4", "Rep. Sam Okafor", RIVERSIDE, PoliticalLeaning.MODERATE,
            [PolicyCategory.TRANSIT, PolicyCategory.HOUSING, PolicyCategory.INFRASTRUCTURE],
        ),
        create_representative(
            "rep_harbor_5", "Rep. Dale Brennan", NORTHGATE, PoliticalLeaning.CONSERVATIVE,
            [PolicyCategory.INFRASTRUCTURE, PolicyCategory.BUDGET, PolicyCategory.TAXATION],
        ),
    ]

    def road_capacity(a: str, b: str) -> float:
        # Downtown arterials are wider than the neighbourhood connectors
        return 6000.0 if DOWNTOWN in (a, b) else 4000.0

    transit_lines = [
        create_transit_line(
            "harbor_metro", "Harbor Metro", TransitType.RAIL,
            [OLD_PORT, DOWNTOWN, RIVERSIDE], 12000.0,
        ),
        create_transit_line(
            "harbor_crosstown", "Crosstown Bus", TransitType.BUS,
            [HILLSIDE, DOWNTOWN, RIVERSIDE, NORTHGATE], 8000.0,
        ),
        create_transit_line(
            "harbor_northgate_ext", "Northgate Extension", TransitType.RAIL,
            [RIVERSIDE, NORTHGATE], 8000.0, operational=False,
        ),
    ]

    total_population: int = sum(d.population for d in districts)
    return create_city(
        id="harbor_city",
        name="Harbor City",
        districts=districts,
        representatives=representatives,
        transit_lines=transit_lines,
        road_network=build_road_network(districts, road_capacity),
        budget=Budget(
            balance=5000.0,
            income_per_turn=576.0,
            expenses_per_turn=400.0,
            tax_rate=0.12,
            transit_subsidy=0.4,
        ),
        initial_metrics=CityMetrics(
            total_population=total_population,
            average_commute=36.0,
            average_rent=1700.0,
            overall_happiness=0.5,
            congestion_index=0.55,
            transit_ridership=8000.0,
            budget_health=0.75,
            housing_supply=118680,
            housing_demand=176000,
            jobs_total=230000,
            economic_output=200000.0,
        ),
        election_interval=8,
        scenario_goals=[
            ScenarioGoal(CityMetric.AVERAGE_RENT, 1400.0, "below", "Average rent below $1,400"),
            ScenarioGoal(CityMetric.OVERALL_HAPPINESS, 0.55, "above", "Overall happiness above 55%"),
            ScenarioGoal(CityMetric.CONGESTION_INDEX, 0.4, "below", "Congestion index below 0.4"),
        ],
        country="Fictional",
        description=(
            "A port city squeezed between the water and the hills: a booming downtown, "
            "a waterfront fighting gentrification and suburbs that only drive."
        ),
    )
