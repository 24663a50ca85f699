"""Result objects handed to the presentation layer after each action."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from citysim.core.state import CityMetrics, DistrictMetrics, VoteRequirement


class EventKind(str, Enum):
    POLICY_EFFECT = "policy_effect"
    ELECTION = "election"
    CRISIS = "crisis"
    MILESTONE = "milestone"
    MIGRATION = "migration"
    BUDGET = "budget"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class ElectionOutcome(str, Enum):
    RETAINED = "retained"
    REPLACED = "replaced"


@dataclass
class GameEvent:
    kind: EventKind
    message: str
    severity: Severity = Severity.INFO
    district_id: Optional[str] = None


@dataclass
class VoteCast:
    representative_id: str
    voted_yes: bool
    reason: str


@dataclass
class VoteResult:
    policy_id: str
    votes: list[VoteCast]
    passed: bool
    votes_for: int
    votes_against: int
    required: VoteRequirement


@dataclass
class DistrictElectionResult:
    district_id: str
    incumbent_id: str
    outcome: ElectionOutcome
    approval_at_election: float
    new_representative_id: Optional[str] = None


@dataclass
class ElectionResult:
    turn: int
    results: list[DistrictElectionResult] = field(default_factory=list)

    @property
    def seats_flipped(self) -> int:
        return sum(1 for r in self.results if r.outcome == ElectionOutcome.REPLACED)


@dataclass
class PopulationMove:
    source: str
    destination: str
    count: int


@dataclass
class DistrictChange:
    district_id: str
    metrics_before: DistrictMetrics
    metrics_after: DistrictMetrics


@dataclass
class TurnResult:
    turn: int
    metrics_before: CityMetrics
    metrics_after: CityMetrics
    district_changes: list[DistrictChange] = field(default_factory=list)
    population_moves: list[PopulationMove] = field(default_factory=list)
    events: list[GameEvent] = field(default_factory=list)
    election: Optional[ElectionResult] = None
    vote_result: Optional[VoteResult] = None
    diagnostics: list[str] = field(default_factory=list)
