"""Approval and election module.

Approval drifts with district happiness and decays a little every turn.
On election turns each incumbent faces a reproducible draw; a seat flips
only when the draw falls under the incumbent's re-election risk and
approval is below 50%.
"""

import logging
import zlib

import numpy as np

from citysim.core.events import (
    DistrictElectionResult,
    ElectionOutcome,
    ElectionResult,
    EventKind,
    GameEvent,
    Severity,
)
from citysim.core.state import (
    District,
    GameState,
    PolicyCategory,
    PoliticalLeaning,
    Representative,
    report_diagnostic,
)

logger = logging.getLogger(__name__)


APPROVAL_DECAY: float = 0.008
HAPPINESS_APPROVAL_WEIGHT: float = 0.35
HIGH_RISK_THRESHOLD: float = 0.35
LOSING_APPROVAL: float = 0.5

HIGH_RISK: float = 0.8
MEDIUM_RISK: float = 0.5
LOW_RISK: float = 0.2

NEWCOMER_APPROVAL: float = 0.55
NEWCOMER_RISK: float = 0.2
PRIORITY_COUNT: int = 3


def re_election_risk(approval: float) -> float:
    if approval < HIGH_RISK_THRESHOLD:
        return HIGH_RISK
    if approval < LOSING_APPROVAL:
        return MEDIUM_RISK
    return LOW_RISK


def update_approval(state: GameState, params: dict) -> None:
    """Move each representative's approval with district happiness, then re-rate risk."""
    weight: float = params.get("happiness_approval_weight", HAPPINESS_APPROVAL_WEIGHT)
    decay: float = params.get("approval_decay", APPROVAL_DECAY)

    for rep in state.representatives.values():
        district = state.districts.get(rep.district_id)
        if district is None:
            report_diagnostic(state, f"Representative {rep.id} sits for unknown district {rep.district_id}")
            continue
        happiness_effect: float = (district.metrics.happiness - 0.5) * weight
        rep.approval_rating = float(np.clip(rep.approval_rating + happiness_effect - decay, 0.0, 1.0))
        rep.re_election_risk = re_election_risk(rep.approval_rating)


def election_draw(turn: int, representative_id: str) -> float:
    """Uniform [0, 1) draw keyed on turn and representative identity."""
    seed = [turn, zlib.crc32(representative_id.encode("utf-8"))]
    return float(np.random.default_rng(seed).random())


def determine_new_leaning(district: District) -> PoliticalLeaning:
    """Leaning of a challenger, shaped by what the district is struggling with."""
    m = district.metrics
    if m.rent_burden > 0.5:
        return PoliticalLeaning.YIMBY if m.traffic_congestion > 0.5 else PoliticalLeaning.PROGRESSIVE
    if district.current_density < district.max_density * 0.3:
        return PoliticalLeaning.NIMBY
    if m.traffic_congestion > 0.7:
        return PoliticalLeaning.POPULIST
    return PoliticalLeaning.MODERATE


def determine_priorities(district: District) -> list[PolicyCategory]:
    """Top three policy categories by district urgency."""
    m = district.metrics
    urgency: list[tuple[PolicyCategory, float]] = [
        (PolicyCategory.TRANSIT, m.traffic_congestion),
        (PolicyCategory.HOUSING, m.rent_burden),
        (PolicyCategory.CONGESTION_PRICING, m.traffic_congestion * 0.8),
        (PolicyCategory.ZONING, m.rent_burden * 0.9),
        (PolicyCategory.INFRASTRUCTURE, 1.0 - m.public_service_satisfaction),
        (PolicyCategory.BUDGET, 0.3),
    ]
    # Stable sort keeps the listed order among ties
    urgency.sort(key=lambda item: item[1], reverse=True)
    return [category for category, _ in urgency[:PRIORITY_COUNT]]


def create_challenger(district: District, turn: int) -> Representative:
    short_name: str = district.name.split("(")[0].strip()
    return Representative(
        id=f"rep_{district.id}_t{turn}",
        name=f"Rep. {short_name} (New)",
        district_id=district.id,
        leaning=determine_new_leaning(district),
        approval_rating=NEWCOMER_APPROVAL,
        re_election_risk=NEWCOMER_RISK,
        priorities=determine_priorities(district),
        term_number=1,
    )


def run_election(state: GameState, turn: int) -> tuple[ElectionResult, list[GameEvent]]:
    """Hold an election in every district with a seated representative.

    Losing incumbents are replaced in place in the district-keyed mapping;
    winners start a new term. Returns the per-district results and one
    warning event per flipped seat plus an info summary.
    """
    result = ElectionResult(turn=turn)
    events: list[GameEvent] = []

    for district_id, rep in list(state.representatives.items()):
        district = state.districts.get(district_id)
        if district is None:
            report_diagnostic(state, f"Election skipped: representative {rep.id} has unknown district {district_id}")
            continue

        draw: float = election_draw(turn, rep.id)
        loses: bool = draw < rep.re_election_risk and rep.approval_rating < LOSING_APPROVAL

        if loses:
            challenger: Representative = create_challenger(district, turn)
            state.representatives[district_id] = challenger
            result.results.append(DistrictElectionResult(
                district_id=district_id,
                incumbent_id=rep.id,
                outcome=ElectionOutcome.REPLACED,
                approval_at_election=rep.approval_rating,
                new_representative_id=challenger.id,
            ))
            events.append(GameEvent(
                kind=EventKind.ELECTION,
                message=f"{district.name}: seat flipped to {challenger.leaning.value}",
                severity=Severity.WARNING,
                district_id=district_id,
            ))
        else:
            rep.term_number += 1
            result.results.append(DistrictElectionResult(
                district_id=district_id,
                incumbent_id=rep.id,
                outcome=ElectionOutcome.RETAINED,
                approval_at_election=rep.approval_rating,
            ))

    flipped: int = result.seats_flipped
    events.append(GameEvent(
        kind=EventKind.ELECTION,
        message=f"Election held: {flipped} of {len(result.results)} seats changed hands",
        severity=Severity.INFO,
    ))
    logger.info("Turn %d: election held, %d of %d seats flipped", turn, flipped, len(result.results))
    return result, events
