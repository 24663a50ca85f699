#!/usr/bin/env python3
"""Run a scenario city for a number of turns and output results."""

import sys
import os
import json
import logging
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("scenario")

SCENARIOS = {
    "harbor_city": "citysim.scenarios.harbor_city",
}

DEFAULT_TURNS = 40


def main():
    import importlib
    from citysim.core.config import GameMode
    from citysim.core.engine import SimulationEngine
    from citysim.policy import catalog
    from citysim.scenarios import harbor_city

    if len(sys.argv) < 2 or sys.argv[1] not in SCENARIOS:
        print("Usage: python run_scenario.py <scenario_name> [turns] [political|sandbox]")
        print(f"Available scenarios: {', '.join(SCENARIOS.keys())}")
        sys.exit(1)

    scenario_name = sys.argv[1]
    turns = int(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_TURNS
    mode = GameMode(sys.argv[3]) if len(sys.argv) > 3 else GameMode.POLITICAL
    logger.info(f"Running scenario: {scenario_name} ({turns} turns, {mode.value} mode)")

    # Each scenario module has a build_*() function
    module = importlib.import_module(SCENARIOS[scenario_name])
    build_fn_name = [n for n in dir(module) if n.startswith("build_")][0]
    city = getattr(module, build_fn_name)()
    engine = SimulationEngine(city, mode=mode)

    # Opening agenda
    proposals = [
        catalog.create_bus_lane_policy([harbor_city.DOWNTOWN, harbor_city.RIVERSIDE], "Harbor Boulevard"),
        catalog.create_public_services_policy(harbor_city.NORTHGATE, "Northgate"),
        catalog.create_upzone_policy(harbor_city.OLD_PORT, "Old Port"),
        catalog.create_pilot_congestion_pricing_policy(harbor_city.DOWNTOWN, "Downtown"),
    ]
    for proposal in proposals:
        result = engine.propose_policy(proposal)
        if result is not None:
            logger.info(f"  {proposal.name}: {'passed' if result.passed else 'failed'} "
                        f"({result.votes_for}-{result.votes_against})")
            for vote in result.votes:
                logger.info(f"    {vote.representative_id}: {'yes' if vote.voted_yes else 'no'} ({vote.reason})")

    # Run simulation
    start = time.time()
    for _ in range(turns):
        turn_result = engine.tick()
        for event in turn_result.events:
            if event.severity.value != "info":
                logger.info(f"Turn {turn_result.turn}: [{event.kind.value}] {event.message}")
        for message in turn_result.diagnostics:
            logger.info(f"Turn {turn_result.turn}: diagnostic: {message}")
        if engine.is_game_over():
            logger.info(f"Game over on turn {engine.get_turn()}: {engine.state.game_over_reason}")
            break

    elapsed = time.time() - start
    logger.info(f"Simulation completed in {elapsed:.2f}s ({engine.get_turn()} turns)")

    # Save results
    results_dir = os.path.join(os.path.dirname(__file__), "..", "results", scenario_name)
    os.makedirs(results_dir, exist_ok=True)

    metrics_df = engine.metrics_frame()
    metrics_df.to_csv(os.path.join(results_dir, "metrics.csv"))
    engine.districts_frame().to_csv(os.path.join(results_dir, "final_districts.csv"))
    with open(os.path.join(results_dir, "snapshot.json"), "w") as f:
        json.dump(engine.snapshot(), f, indent=2)

    logger.info(f"Results saved to {results_dir}/")

    # Print summary
    first = metrics_df.iloc[0]
    last = metrics_df.iloc[-1]
    logger.info("=== Summary (baseline → final) ===")
    for key in metrics_df.columns:
        v0 = first[key]
        v1 = last[key]
        if v0 != 0:
            pct = (v1 - v0) / v0 * 100
            logger.info(f"  {key}: {v0:.2f} → {v1:.2f} ({pct:+.1f}%)")
        else:
            logger.info(f"  {key}: {v0:.2f} → {v1:.2f}")

    for goal, met in engine.check_goals():
        logger.info(f"  Goal '{goal.label}': {'met' if met else 'not met'}")


if __name__ == "__main__":
    main()
