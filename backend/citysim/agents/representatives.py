"""Representative voting module.

Each representative scores a proposal from ideology, district need,
priorities, targeting, cost and electoral risk, then votes yes only on a
strictly positive score. Tallies are resolved by the proposal's vote
requirement. No randomness is involved.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from citysim.core.events import VoteCast, VoteResult
from citysim.core.state import (
    District,
    PolicyCategory,
    PolicyProposal,
    PoliticalLeaning,
    Representative,
    VoteRequirement,
)

logger = logging.getLogger(__name__)


# Category alignment per leaning; missing entries score 0
IDEOLOGY_ALIGNMENT: dict[PoliticalLeaning, dict[PolicyCategory, float]] = {
    PoliticalLeaning.PROGRESSIVE: {
        PolicyCategory.HOUSING: 0.8,
        PolicyCategory.TRANSIT: 0.7,
        PolicyCategory.CONGESTION_PRICING: 0.4,
        PolicyCategory.ZONING: 0.3,
    },
    PoliticalLeaning.CONSERVATIVE: {
        PolicyCategory.CONGESTION_PRICING: -0.4,
        PolicyCategory.TAXATION: -0.8,
        PolicyCategory.ZONING: -0.3,
    },
    PoliticalLeaning.NIMBY: {
        PolicyCategory.ZONING: -0.9,
        PolicyCategory.HOUSING: -0.4,
    },
    PoliticalLeaning.YIMBY: {
        PolicyCategory.ZONING: 0.9,
        PolicyCategory.HOUSING: 0.7,
        PolicyCategory.TRANSIT: 0.5,
    },
    PoliticalLeaning.POPULIST: {
        PolicyCategory.CONGESTION_PRICING: -0.7,
        PolicyCategory.TAXATION: -0.5,
        PolicyCategory.HOUSING: 0.5,
        PolicyCategory.TRANSIT: 0.3,
    },
}
# Moderates lean slightly toward doing something
MODERATE_ALIGNMENT: float = 0.1
IDEOLOGY_WEIGHT: float = 2.0
IDEOLOGY_REASON_THRESHOLD: float = 0.3

TRAFFIC_NEED_THRESHOLD: float = 0.5
TRAFFIC_NEED_BASELINE: float = 0.3
TRAFFIC_NEED_SCALE: float = 3.0
RENT_NEED_THRESHOLD: float = 0.35
RENT_NEED_BASELINE: float = 0.25
RENT_NEED_SCALE: float = 2.5
SERVICE_NEED_THRESHOLD: float = 0.5
SERVICE_NEED_SCALE: float = 2.0
NEED_REASON_THRESHOLD: float = 0.5

PRIORITY_BONUS: float = 1.0
TARGETED_BONUS: float = 0.5
UNTARGETED_PENALTY: float = 0.3

# Cost at which the cost penalty reaches 1.0, and its ceiling
COST_REFERENCE: float = 2000.0
MAX_COST_PENALTY: float = 1.5
FISCAL_HAWK_COST_WEIGHT: float = 1.5
DEFAULT_COST_WEIGHT: float = 0.3
REVENUE_BONUS: float = 0.5

RISK_AVERSION_RISK_THRESHOLD: float = 0.5
RISK_AVERSION_COST_THRESHOLD: float = 0.6

POPULIST_PRICING_PENALTY: float = 1.5


@dataclass
class VoteDecision:
    votes_yes: bool
    reason: str
    score: float


def ideology_score(leaning: PoliticalLeaning, category: PolicyCategory) -> float:
    if leaning == PoliticalLeaning.MODERATE:
        return MODERATE_ALIGNMENT
    return IDEOLOGY_ALIGNMENT.get(leaning, {}).get(category, 0.0)


def determine_vote(
    rep: Representative,
    proposal: PolicyProposal,
    district: District,
) -> VoteDecision:
    """Score *proposal* from *rep*'s point of view; yes iff the score is above zero."""
    score: float = 0.0
    reasons: list[str] = []
    m = district.metrics
    category: PolicyCategory = proposal.category

    # ----- 1. Ideology -----
    alignment: float = ideology_score(rep.leaning, category)
    score += alignment * IDEOLOGY_WEIGHT
    if abs(alignment) > IDEOLOGY_REASON_THRESHOLD:
        reasons.append("aligns with ideology" if alignment > 0 else "conflicts with ideology")

    # ----- 2. District needs -----
    if m.traffic_congestion > TRAFFIC_NEED_THRESHOLD and category in (
        PolicyCategory.TRANSIT, PolicyCategory.CONGESTION_PRICING,
    ):
        urgency: float = (m.traffic_congestion - TRAFFIC_NEED_BASELINE) * TRAFFIC_NEED_SCALE
        score += urgency
        if urgency > NEED_REASON_THRESHOLD:
            reasons.append("district needs traffic relief")

    if m.rent_burden > RENT_NEED_THRESHOLD and category in (
        PolicyCategory.HOUSING, PolicyCategory.ZONING,
    ):
        urgency = (m.rent_burden - RENT_NEED_BASELINE) * RENT_NEED_SCALE
        score += urgency
        if urgency > NEED_REASON_THRESHOLD:
            reasons.append("district needs rent relief")

    if m.public_service_satisfaction < SERVICE_NEED_THRESHOLD and category == PolicyCategory.INFRASTRUCTURE:
        score += (SERVICE_NEED_THRESHOLD - m.public_service_satisfaction) * SERVICE_NEED_SCALE
        reasons.append("district needs better services")

    # ----- 3. Priorities -----
    if category in rep.priorities:
        score += PRIORITY_BONUS
        reasons.append("priority issue")

    # ----- 4. Targeting -----
    if proposal.targets(district.id):
        score += TARGETED_BONUS
    else:
        score -= UNTARGETED_PENALTY

    # ----- 5. Cost -----
    if proposal.cost > 0:
        cost_penalty: float = min(MAX_COST_PENALTY, proposal.cost / COST_REFERENCE)
        if rep.leaning == PoliticalLeaning.CONSERVATIVE:
            score -= cost_penalty * FISCAL_HAWK_COST_WEIGHT
            if cost_penalty > 0.5:
                reasons.append("too expensive")
        else:
            score -= cost_penalty * DEFAULT_COST_WEIGHT
    else:
        score += REVENUE_BONUS
        reasons.append("generates revenue")

    # ----- 6. Electoral risk -----
    if (
        rep.re_election_risk > RISK_AVERSION_RISK_THRESHOLD
        and proposal.political_cost > RISK_AVERSION_COST_THRESHOLD
    ):
        risk_penalty: float = rep.re_election_risk * proposal.political_cost
        score -= risk_penalty
        if risk_penalty > 0.5:
            reasons.append("too risky before election")

    # ----- 7. Populist objection to pricing -----
    if rep.leaning == PoliticalLeaning.POPULIST and category == PolicyCategory.CONGESTION_PRICING:
        score -= POPULIST_PRICING_PENALTY
        reasons.append("opposes pricing on principle")

    votes_yes: bool = score > 0
    if reasons:
        reason = "; ".join(reasons)
    else:
        reason = "generally supportive" if votes_yes else "not convinced"
    return VoteDecision(votes_yes=votes_yes, reason=reason, score=score)


def is_passed(
    requirement: VoteRequirement,
    votes_for: int,
    total: int,
    population_for: float = 0.0,
    population_total: float = 0.0,
) -> bool:
    """Apply the pass rule for *requirement* to a tally."""
    if requirement == VoteRequirement.EXECUTIVE_ORDER:
        return True
    if requirement == VoteRequirement.SIMPLE_MAJORITY:
        return votes_for > total / 2
    if requirement == VoteRequirement.SUPER_MAJORITY:
        return total > 0 and votes_for >= math.ceil(total * 2 / 3)
    if requirement == VoteRequirement.REFERENDUM:
        return population_for > population_total / 2
    return False


def conduct_vote(
    proposal: PolicyProposal,
    representatives: Iterable[Representative],
    districts: dict[str, District],
) -> VoteResult:
    """Poll every representative and resolve the result.

    Representatives whose district is missing are skipped. A referendum
    weighs each yes vote by the population of the voter's district.
    """
    votes: list[VoteCast] = []
    population_for: float = 0.0
    population_total: float = 0.0

    for rep in representatives:
        district = districts.get(rep.district_id)
        if district is None:
            logger.warning("Representative %s sits for unknown district %s", rep.id, rep.district_id)
            continue
        decision: VoteDecision = determine_vote(rep, proposal, district)
        votes.append(VoteCast(rep.id, decision.votes_yes, decision.reason))
        population_total += district.population
        if decision.votes_yes:
            population_for += district.population

    votes_for: int = sum(1 for v in votes if v.voted_yes)
    passed: bool = is_passed(
        proposal.vote_requirement, votes_for, len(votes), population_for, population_total
    )
    return VoteResult(
        policy_id=proposal.id,
        votes=votes,
        passed=passed,
        votes_for=votes_for,
        votes_against=len(votes) - votes_for,
        required=proposal.vote_requirement,
    )
