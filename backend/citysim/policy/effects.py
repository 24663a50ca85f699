"""Policy effect engine.

Applies the delayed, duration-scoped metric deltas of passed policies.
An effect is inert until its activation countdown reaches zero; from then
on its delta lands on its target scope every turn until its expiry
countdown runs out. Permanent effects carry -1 and never expire.
"""

from citysim.core.events import EventKind, GameEvent, Severity
from citysim.core.metrics import CityMetric, adjust_city_metric, adjust_district_metric
from citysim.core.state import (
    ActiveEffect,
    GameState,
    PolicyEffect,
    PolicyProposal,
    TargetKind,
    report_diagnostic,
)


PERMANENT: int = -1
ADJACENT_MAGNITUDE: float = 0.5


def schedule_effects(proposal: PolicyProposal) -> list[ActiveEffect]:
    """Active-effect trackers for every effect of a newly applied policy."""
    return [
        ActiveEffect(
            policy_id=proposal.id,
            effect=effect,
            turns_remaining=PERMANENT if effect.duration == 0 else effect.duration,
            turns_until_active=effect.delay,
        )
        for effect in proposal.effects
    ]


def _apply_to_district(state: GameState, district_id: str, metric, delta: float) -> None:
    district = state.districts.get(district_id)
    if district is None:
        report_diagnostic(state, f"Policy effect targets unknown district {district_id}")
        return
    adjust_district_metric(district.metrics, metric, delta)


def apply_effect(state: GameState, effect: PolicyEffect) -> None:
    """Apply one turn's worth of *effect* to its target scope."""
    target = effect.target
    metric = effect.metric

    if target.kind in (TargetKind.DISTRICT, TargetKind.DISTRICTS):
        for district_id in target.district_ids:
            _apply_to_district(state, district_id, metric, effect.delta)

    elif target.kind == TargetKind.CITY:
        if isinstance(metric, CityMetric):
            adjust_city_metric(state.metrics, metric, effect.delta)
        else:
            for district in state.districts.values():
                adjust_district_metric(district.metrics, metric, effect.delta)

    elif target.kind == TargetKind.ADJACENT:
        source = state.districts.get(target.district_ids[0]) if target.district_ids else None
        if source is None:
            report_diagnostic(state, f"Adjacent-scope effect has unknown source {target.district_ids}")
            return
        for adj_id in source.adjacent_districts:
            _apply_to_district(state, adj_id, metric, effect.delta * ADJACENT_MAGNITUDE)


def apply_active_effects(state: GameState) -> list[GameEvent]:
    """Advance every active effect by one turn and drop the expired ones.

    Returns one policy_effect event per policy whose effects started acting
    or expired this turn.
    """
    started: dict[str, int] = {}
    expired: dict[str, int] = {}

    for active in state.active_effects:
        if active.turns_until_active > 0:
            active.turns_until_active -= 1
            continue

        if not active.started:
            active.started = True
            started[active.policy_id] = started.get(active.policy_id, 0) + 1

        apply_effect(state, active.effect)

        if active.turns_remaining > 0:
            active.turns_remaining -= 1
            if active.turns_remaining == 0:
                expired[active.policy_id] = expired.get(active.policy_id, 0) + 1

    if expired:
        state.active_effects = [a for a in state.active_effects if a.turns_remaining != 0]

    events: list[GameEvent] = []
    for policy_id, count in started.items():
        events.append(GameEvent(
            kind=EventKind.POLICY_EFFECT,
            message=f"Policy {policy_id}: {count} effect(s) now in force",
            severity=Severity.INFO,
        ))
    for policy_id, count in expired.items():
        events.append(GameEvent(
            kind=EventKind.POLICY_EFFECT,
            message=f"Policy {policy_id}: {count} effect(s) expired",
            severity=Severity.INFO,
        ))
    return events
