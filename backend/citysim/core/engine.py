"""Main simulation engine.

Orchestrates one turn in a fixed phase order:
    1. Zoning (densities, damped rents, housing supply)
    2. Traffic (persistent road loads, commute, congestion)
    3. Transit (construction, ridership; returns operating cost)
    4. Economy (policy effects, happiness, migration, budget)
    5. City congestion from the road network
    6. Representative approval
    7. Elections (political mode, interval turns only)
    8. Termination check (bankruptcy or every goal met)

Between turns the player proposes policies: voted on in political mode,
applied directly in sandbox mode.
"""

import copy
import dataclasses
import logging
from typing import Optional

import pandas as pd

from citysim.agents.elections import run_election, update_approval
from citysim.agents.representatives import conduct_vote
from citysim.core.config import GameMode, SandboxControls, SimulationConfig
from citysim.core.events import (
    DistrictChange,
    ElectionResult,
    EventKind,
    GameEvent,
    Severity,
    TurnResult,
    VoteResult,
)
from citysim.core.state import (
    CityConfig,
    CityMetrics,
    District,
    GameState,
    PassedPolicy,
    PolicyProposal,
    ScenarioGoal,
    VoteRecord,
    VoteRequirement,
)
from citysim.policy.effects import schedule_effects
from citysim.system_dynamics.economy import BANKRUPTCY_BALANCE, update_economy
from citysim.system_dynamics.traffic import (
    calculate_city_congestion,
    initialize_road_loads,
    update_traffic,
)
from citysim.system_dynamics.transit import update_transit
from citysim.system_dynamics.zoning import (
    ZoningChangeResult,
    apply_zoning_change,
    update_district_density,
    update_zoning,
)

logger = logging.getLogger(__name__)


BANKRUPTCY_REASON: str = "City went bankrupt."
GOALS_REASON: str = "All scenario goals achieved!"


class SimulationEngine:
    """Owns one city's game state and advances it turn by turn.

    The city configuration is deep-copied on construction, so the caller's
    template is never mutated. Read accessors return copies as well.
    """

    def __init__(
        self,
        city: CityConfig,
        mode: GameMode = GameMode.POLITICAL,
        config: Optional[SimulationConfig] = None,
    ):
        config = copy.deepcopy(config) if config is not None else SimulationConfig()
        for error in config.validate():
            logger.warning("Config value out of range, clamping: %s", error)
        self.config: SimulationConfig = config.clamp()
        self.params: dict = self.config.params

        city = copy.deepcopy(city)
        self.state = GameState(
            city=city,
            mode=GameMode(mode),
            metrics=copy.deepcopy(city.initial_metrics),
        )

        for district in self.state.districts.values():
            update_district_density(district)
        # Seed loads from configured congestion so turn 1 does not start from empty roads
        initialize_road_loads(self.state)

        # Sandbox controls scale from these, so repeated calls do not compound
        self._base_max_density: dict[str, float] = {
            did: d.max_density for did, d in self.state.districts.items()
        }
        self._base_road_capacity: dict = dict(self.state.city.road_network.capacities)

        self._record_history()
        logger.info(
            "Engine ready: %s (%d districts, %s mode)",
            city.name, len(city.districts), self.state.mode.value,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def get_state(self) -> GameState:
        return copy.deepcopy(self.state)

    def get_metrics(self) -> CityMetrics:
        return copy.deepcopy(self.state.metrics)

    def get_districts(self) -> dict[str, District]:
        return copy.deepcopy(self.state.districts)

    def get_turn(self) -> int:
        return self.state.turn

    def is_game_over(self) -> bool:
        return self.state.game_over

    def snapshot(self) -> dict:
        """Capture current state as a plain dict."""
        state = self.state
        return {
            "turn": state.turn,
            "mode": state.mode.value,
            "game_over": state.game_over,
            "game_over_reason": state.game_over_reason,
            "metrics": dataclasses.asdict(state.metrics),
            "budget": dataclasses.asdict(state.budget),
            "districts": {
                did: {
                    "name": d.name,
                    "population": d.population,
                    "current_density": d.current_density,
                    "max_density": d.max_density,
                    "has_transit_station": d.has_transit_station,
                    **dataclasses.asdict(d.metrics),
                }
                for did, d in state.districts.items()
            },
            "representatives": {
                did: {
                    "id": rep.id,
                    "name": rep.name,
                    "leaning": rep.leaning.value,
                    "approval_rating": rep.approval_rating,
                    "re_election_risk": rep.re_election_risk,
                    "term_number": rep.term_number,
                }
                for did, rep in state.representatives.items()
            },
            "transit_lines": {
                line.id: {
                    "name": line.name,
                    "type": line.type.value,
                    "operational": line.operational,
                    "construction_turns_remaining": line.construction_turns_remaining,
                    "ridership": line.ridership,
                }
                for line in state.city.transit_lines
            },
            "active_effects": len(state.active_effects),
        }

    def metrics_frame(self) -> pd.DataFrame:
        """City metrics per turn, indexed by turn (turn 0 is the starting state)."""
        return pd.DataFrame(self.state.metrics_history).set_index("turn")

    def districts_frame(self) -> pd.DataFrame:
        """One row per district with population, density and every district metric."""
        rows: list[dict] = []
        for did, d in self.state.districts.items():
            rows.append({
                "district_id": did,
                "name": d.name,
                "population": d.population,
                "current_density": d.current_density,
                "density_ratio": d.density_ratio,
                "has_transit_station": d.has_transit_station,
                **dataclasses.asdict(d.metrics),
            })
        return pd.DataFrame(rows).set_index("district_id")

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def propose_policy(self, proposal: PolicyProposal) -> Optional[VoteResult]:
        """Put a policy forward.

        Sandbox mode applies it without a vote. Political mode polls every
        representative and applies it only if the vote passes. Returns None
        once the game is over. Raises ValueError for a malformed proposal.
        """
        if self.state.game_over:
            return None

        errors: list[str] = proposal.validate()
        if errors:
            raise ValueError(f"Invalid proposal {proposal.id}: " + "; ".join(errors))

        if self.state.mode == GameMode.SANDBOX:
            result = VoteResult(
                policy_id=proposal.id,
                votes=[],
                passed=True,
                votes_for=0,
                votes_against=0,
                required=VoteRequirement.EXECUTIVE_ORDER,
            )
            self._apply_policy(proposal, result)
            return result

        result = conduct_vote(
            proposal, self.state.representatives.values(), self.state.districts
        )
        self.state.last_vote_result = result
        logger.info(
            "Turn %d: %s %s (%d-%d, %s)",
            self.state.turn, proposal.name, "passed" if result.passed else "failed",
            result.votes_for, result.votes_against, proposal.vote_requirement.value,
        )

        if result.passed:
            self._apply_policy(proposal, result)

        reps_by_id = {rep.id: rep for rep in self.state.representatives.values()}
        for vote in result.votes:
            rep = reps_by_id.get(vote.representative_id)
            if rep is not None:
                rep.vote_history.append(VoteRecord(proposal.id, self.state.turn, vote.voted_yes))
        return result

    def apply_sandbox_controls(self, controls: SandboxControls) -> bool:
        """Set city-wide levers directly. Only honoured in sandbox mode.

        Density caps and road capacities are scaled from their values at
        engine construction. Returns whether the controls were applied.
        """
        if self.state.mode != GameMode.SANDBOX:
            logger.warning("Sandbox controls ignored in %s mode", self.state.mode.value)
            return False

        controls = dataclasses.replace(controls).clamp()
        for did, district in self.state.districts.items():
            base: float = self._base_max_density.get(did, district.max_density)
            district.max_density = base * controls.density_multiplier
            district.parking_minimum = controls.parking_minimum

        road = self.state.city.road_network
        for key in road.capacities:
            base_capacity: float = self._base_road_capacity.get(key, road.capacities[key])
            road.capacities[key] = base_capacity * controls.road_capacity

        self.state.budget.tax_rate = controls.tax_rate
        self.state.budget.transit_subsidy = controls.transit_subsidy
        return True

    def apply_zoning_change(self, district_id: str, zones: dict) -> ZoningChangeResult:
        district = self.state.districts.get(district_id)
        if district is None:
            return ZoningChangeResult(False, f"Unknown district: {district_id}")
        result = apply_zoning_change(district, zones)
        if result.success:
            logger.info("Turn %d: rezoned %s", self.state.turn, district_id)
        return result

    def check_goals(self) -> list[tuple[ScenarioGoal, bool]]:
        """Each scenario goal paired with whether it is currently met."""
        return [(goal, goal.is_met(self.state.metrics)) for goal in self.state.city.scenario_goals]

    # ------------------------------------------------------------------
    # Turn processing
    # ------------------------------------------------------------------

    def tick(self) -> TurnResult:
        """Advance the simulation by one turn."""
        state = self.state
        if state.game_over:
            return self._game_over_result()

        state.turn += 1
        params: dict = self.params
        metrics_before: CityMetrics = copy.copy(state.metrics)
        districts_before = {did: copy.copy(d.metrics) for did, d in state.districts.items()}
        events: list[GameEvent] = []

        # ----- 1. Zoning -----
        logger.debug("Turn %d: zoning", state.turn)
        update_zoning(state, params)

        # ----- 2. Traffic -----
        logger.debug("Turn %d: traffic", state.turn)
        update_traffic(state, params)

        # ----- 3. Transit -----
        logger.debug("Turn %d: transit", state.turn)
        transit_events, transit_cost = update_transit(state, params)
        events.extend(transit_events)

        # ----- 4. Economy -----
        logger.debug("Turn %d: economy (transit cost %.0f)", state.turn, transit_cost)
        moves, economy_events = update_economy(state, params, transit_cost)
        events.extend(economy_events)

        # ----- 5. City congestion -----
        state.metrics.congestion_index = calculate_city_congestion(state.city.road_network)

        # ----- 6. Approval -----
        update_approval(state, params)

        # ----- 7. Elections -----
        election: Optional[ElectionResult] = None
        if state.mode == GameMode.POLITICAL and state.turn % state.city.election_interval == 0:
            election, election_events = run_election(state, state.turn)
            state.election_log.append(election)
            events.extend(election_events)

        # ----- 8. Termination -----
        self._check_game_over(events)

        self._record_history()
        result = TurnResult(
            turn=state.turn,
            metrics_before=metrics_before,
            metrics_after=copy.copy(state.metrics),
            district_changes=[
                DistrictChange(did, districts_before[did], copy.copy(d.metrics))
                for did, d in state.districts.items()
                if did in districts_before
            ],
            population_moves=moves,
            events=events,
            election=election,
            vote_result=state.last_vote_result,
            diagnostics=list(state.diagnostics),
        )
        state.diagnostics = []
        state.last_vote_result = None
        return result

    def _apply_policy(self, proposal: PolicyProposal, result: VoteResult) -> None:
        self.state.policy_history.append(PassedPolicy(
            policy=proposal,
            turn_passed=self.state.turn,
            votes_for=result.votes_for,
            votes_against=result.votes_against,
        ))
        self.state.active_effects.extend(schedule_effects(proposal))
        self.state.budget.balance -= proposal.cost

    def _check_game_over(self, events: list[GameEvent]) -> None:
        state = self.state
        if state.budget.balance < self.params.get("bankruptcy_balance", BANKRUPTCY_BALANCE):
            state.game_over = True
            state.game_over_reason = BANKRUPTCY_REASON
            events.append(GameEvent(
                kind=EventKind.CRISIS,
                message="The city is bankrupt! Game over.",
                severity=Severity.CRITICAL,
            ))
            logger.info("Turn %d: game over, %s", state.turn, BANKRUPTCY_REASON)
            return

        goals = self.check_goals()
        if goals and all(met for _, met in goals):
            state.game_over = True
            state.game_over_reason = GOALS_REASON
            events.append(GameEvent(
                kind=EventKind.MILESTONE,
                message="Congratulations! All scenario goals achieved!",
                severity=Severity.INFO,
            ))
            logger.info("Turn %d: game over, %s", state.turn, GOALS_REASON)

    def _game_over_result(self) -> TurnResult:
        return TurnResult(
            turn=self.state.turn,
            metrics_before=copy.copy(self.state.metrics),
            metrics_after=copy.copy(self.state.metrics),
            events=[GameEvent(
                kind=EventKind.CRISIS,
                message="Game is over.",
                severity=Severity.CRITICAL,
            )],
        )

    def _record_history(self) -> None:
        row: dict = {"turn": self.state.turn, **dataclasses.asdict(self.state.metrics)}
        row["budget_balance"] = self.state.budget.balance
        self.state.metrics_history.append(row)
