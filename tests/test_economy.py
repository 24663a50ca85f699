"""
Tests for the economy: happiness, job access, migration, growth, budget
and city-wide aggregates.
"""

import pytest

from citysim.core.events import EventKind, PopulationMove, Severity
from citysim.core.state import Budget
from citysim.system_dynamics.economy import (
    apply_population_growth,
    calculate_attractiveness,
    calculate_budget_health,
    calculate_happiness,
    calculate_job_access,
    simulate_migration,
    update_budget,
    update_city_metrics,
    update_economy,
)


def _pair(make_district, x_population=10000, y_population=40000):
    x = make_district("x", population=x_population, adjacent=["y"])
    y = make_district("y", population=y_population, adjacent=["x"])
    x.metrics.happiness = 0.9
    y.metrics.happiness = 0.1
    return {"x": x, "y": y}


class TestHappiness:
    def test_weighted_components(self, make_district):
        d = make_district()
        expected = 0.5 * 0.25 + 0.65 * 0.25 + 0.5 * 0.15 + 0.5 * 0.15 + 0.5 * 0.10 + 0.4 * 0.10
        assert calculate_happiness(d) == pytest.approx(expected)

    def test_long_commute_floors_component(self, make_district):
        short = make_district()
        long = make_district()
        long.metrics.average_commute_minutes = 120.0
        assert calculate_happiness(long) == pytest.approx(calculate_happiness(short) - 0.5 * 0.25)

    def test_job_access_saturates(self, state):
        a = state.districts["a"]
        assert calculate_job_access(a, state.districts, 1.0) == 1.0
        assert calculate_job_access(a, state.districts, 0.0) == 0.0

    def test_transit_link_improves_job_access(self, state):
        a = state.districts["a"]
        linked = calculate_job_access(a, state.districts, 1_000_000.0)
        a.has_transit_station = False
        unlinked = calculate_job_access(a, state.districts, 1_000_000.0)
        assert linked > unlinked


class TestMigration:
    def test_moves_toward_more_attractive_neighbour(self, make_district):
        districts = _pair(make_district)
        moves = simulate_migration(districts)
        assert moves == [PopulationMove(source="y", destination="x", count=102)]
        assert districts["x"].population == 10102
        assert districts["y"].population == 39898

    def test_no_moves_within_margin(self, make_district):
        districts = _pair(make_district)
        districts["x"].metrics.happiness = districts["y"].metrics.happiness
        assert simulate_migration(districts) == []

    def test_bounded_by_destination_room(self, make_district):
        # Cap is 50,000; only 100 places left, 2% of which may fill per turn
        districts = _pair(make_district, x_population=49900)
        moves = simulate_migration(districts)
        assert moves[0].count == 2

    def test_full_destination_receives_nobody(self, make_district):
        districts = _pair(make_district, x_population=50000)
        assert simulate_migration(districts) == []

    def test_source_never_negative(self, make_district):
        source = make_district("s", population=100, adjacent=["d1", "d2", "d3"])
        source.metrics.happiness = 0.0
        districts = {"s": source}
        for did in ("d1", "d2", "d3"):
            dest = make_district(did, population=1000, adjacent=["s"])
            dest.metrics.happiness = 1.0
            districts[did] = dest

        moves = simulate_migration(districts, rate=10.0)

        assert source.population == 0
        assert sum(m.count for m in moves) == 100
        assert sum(d.population for d in districts.values()) == 3100

    def test_scores_taken_before_any_move(self, make_district):
        districts = _pair(make_district)
        before = {did: calculate_attractiveness(d) for did, d in districts.items()}
        moves = simulate_migration(districts)
        for move in moves:
            assert before[move.destination] > before[move.source]

    def test_population_conserved(self, state):
        total = sum(d.population for d in state.districts.values())
        state.districts["a"].metrics.happiness = 1.0
        state.districts["c"].metrics.happiness = 0.0
        simulate_migration(state.districts)
        assert sum(d.population for d in state.districts.values()) == total


class TestGrowth:
    def test_growth_limited_by_room(self, make_district):
        crowded = make_district("c", population=49990)
        apply_population_growth({"c": crowded})
        # floor(10 * 0.02) = 0 places may fill
        assert crowded.population == 49990

    def test_natural_growth(self, make_district):
        d = make_district("d", population=10000)
        apply_population_growth({"d": d})
        assert d.population == 10010


class TestBudget:
    def test_income_and_expenses(self):
        budget = Budget(balance=0.0, tax_rate=0.2, transit_subsidy=0.1)
        events = update_budget(budget, 100000, 1000.0, {})
        assert budget.income_per_turn == pytest.approx(240.0)
        # 1000 * 0.9 - 600 fare recovery
        assert budget.expenses_per_turn == pytest.approx(700.0)
        assert budget.balance == pytest.approx(-460.0)
        assert len(events) == 1
        assert events[0].kind == EventKind.BUDGET
        assert events[0].severity == Severity.WARNING

    def test_transit_never_negative_expense(self):
        budget = Budget(balance=0.0, tax_rate=0.1, transit_subsidy=1.0)
        update_budget(budget, 0, 1000.0, {})
        assert budget.expenses_per_turn == pytest.approx(400.0)

    def test_deep_deficit_is_critical(self):
        budget = Budget(balance=-6000.0, tax_rate=0.1)
        events = update_budget(budget, 0, 0.0, {})
        assert events[0].severity == Severity.CRITICAL

    @pytest.mark.parametrize("balance,health", [
        (0.0, 0.5),
        (-10000.0, 0.0),
        (10000.0, 1.0),
        (50000.0, 1.0),
        (-5000.0, 0.25),
    ])
    def test_budget_health(self, balance, health):
        assert calculate_budget_health(balance) == pytest.approx(health)


class TestCityMetrics:
    def test_population_weighted_averages(self, state):
        state.districts["a"].metrics.happiness = 1.0
        state.districts["b"].metrics.happiness = 0.0
        state.districts["c"].metrics.happiness = 0.0
        update_city_metrics(state)
        assert state.metrics.total_population == 65000
        assert state.metrics.overall_happiness == pytest.approx(20000 / 65000)
        assert state.metrics.housing_demand == int(65000 / 2.5 * 1.1)

    def test_empty_city_keeps_metrics(self, state):
        for d in state.districts.values():
            d.population = 0
        state.metrics.overall_happiness = 0.42
        update_city_metrics(state)
        assert state.metrics.total_population == 0
        assert state.metrics.overall_happiness == 0.42


class TestUpdateEconomy:
    def test_large_moves_raise_events(self, state):
        state.districts["a"].population = 1_000_000
        state.districts["a"].max_density = 1_000_000.0
        state.districts["b"].max_density = 1_000_000.0
        state.districts["a"].metrics.happiness = 0.0
        state.districts["b"].metrics.happiness = 1.0
        state.districts["b"].metrics.green_space_access = 1.0
        state.districts["b"].metrics.public_service_satisfaction = 1.0
        moves, events = update_economy(state, {}, 0.0)
        big = [m for m in moves if m.count >= 500]
        assert big
        assert any(e.kind == EventKind.MIGRATION for e in events)

    def test_budget_health_tracks_balance(self, state):
        update_economy(state, {}, 0.0)
        assert state.metrics.budget_health == pytest.approx(
            calculate_budget_health(state.budget.balance)
        )

    def test_happiness_stays_in_bounds(self, state):
        for _ in range(60):
            update_economy(state, {}, 2500.0)
        for d in state.districts.values():
            assert 0.0 <= d.metrics.happiness <= 1.0
            assert d.population >= 0
