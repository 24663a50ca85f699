"""Simulation parameters, game modes and sandbox controls."""

from dataclasses import dataclass, field
from enum import Enum


class GameMode(str, Enum):
    """Political mode runs votes and elections; sandbox applies policies directly."""

    POLITICAL = "political"
    SANDBOX = "sandbox"


# Default model parameters. Each subsystem also carries the same value as a
# module constant and reads the override with params.get(key, CONSTANT).
DEFAULT_PARAMS = {
    # Zoning
    "base_rent": 1200.0,
    "median_income": 50000.0,
    "rent_damping": 0.08,
    # Traffic
    "load_damping": 0.2,
    "commute_damping": 0.15,
    # Transit
    "ridership_damping": 0.1,
    # Economy
    "happiness_damping": 0.12,
    "migration_rate": 0.008,
    "migration_margin": 0.08,
    "natural_growth_rate": 0.001,
    "tax_per_capita": 0.0012,
    "baseline_tax_rate": 0.1,
    "base_service_expenses": 400.0,
    "fare_recovery_ratio": 0.6,
    "deficit_crisis_balance": -5000.0,
    "deficit_warning_net": -200.0,
    # Orchestrator
    "bankruptcy_balance": -10000.0,
    # Politics
    "approval_decay": 0.008,
    "happiness_approval_weight": 0.35,
}

# Keys whose value is an exponential damping factor in (0, 1]
DAMPING_KEYS = (
    "rent_damping",
    "load_damping",
    "commute_damping",
    "ridership_damping",
    "happiness_damping",
)

# Keys that must be non-negative rates or amounts
NON_NEGATIVE_KEYS = (
    "base_rent",
    "median_income",
    "migration_rate",
    "migration_margin",
    "natural_growth_rate",
    "tax_per_capita",
    "baseline_tax_rate",
    "base_service_expenses",
    "fare_recovery_ratio",
    "approval_decay",
    "happiness_approval_weight",
)


@dataclass
class SimulationConfig:
    """Tunable parameters for one engine instance."""

    params: dict = field(default_factory=lambda: dict(DEFAULT_PARAMS))

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if valid."""
        errors = []
        for key in DAMPING_KEYS:
            value = self.params.get(key, DEFAULT_PARAMS[key])
            if not 0.0 < value <= 1.0:
                errors.append(f"{key} must be in (0, 1], got {value}")
        for key in NON_NEGATIVE_KEYS:
            value = self.params.get(key, DEFAULT_PARAMS[key])
            if value < 0:
                errors.append(f"{key} must be >= 0, got {value}")
        if self.params.get("baseline_tax_rate", 0.1) == 0:
            errors.append("baseline_tax_rate must be > 0")
        return errors

    def clamp(self) -> "SimulationConfig":
        """Clamp all values to valid ranges."""
        for key in DAMPING_KEYS:
            value = self.params.get(key, DEFAULT_PARAMS[key])
            self.params[key] = max(0.001, min(1.0, value))
        for key in NON_NEGATIVE_KEYS:
            value = self.params.get(key, DEFAULT_PARAMS[key])
            self.params[key] = max(0.0, value)
        if self.params["baseline_tax_rate"] == 0:
            self.params["baseline_tax_rate"] = DEFAULT_PARAMS["baseline_tax_rate"]
        return self


@dataclass
class SandboxControls:
    """Direct city-wide levers available only in sandbox mode."""

    density_multiplier: float = 1.0  # 0.5-3.0, scales every district's density cap
    transit_coverage: float = 0.5  # 0-1
    road_capacity: float = 1.0  # 0.5-3.0, scales every road segment
    parking_minimum: float = 1.0  # 0-3 spaces per unit
    tax_rate: float = 0.1  # 0-0.5
    transit_subsidy: float = 0.3  # 0-1
    congestion_pricing_enabled: bool = False
    congestion_price_level: float = 0.0  # 0-1

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if valid."""
        errors = []
        if not 0.5 <= self.density_multiplier <= 3.0:
            errors.append(f"density_multiplier must be 0.5-3, got {self.density_multiplier}")
        if not 0.0 <= self.transit_coverage <= 1.0:
            errors.append(f"transit_coverage must be 0-1, got {self.transit_coverage}")
        if not 0.5 <= self.road_capacity <= 3.0:
            errors.append(f"road_capacity must be 0.5-3, got {self.road_capacity}")
        if not 0.0 <= self.parking_minimum <= 3.0:
            errors.append(f"parking_minimum must be 0-3, got {self.parking_minimum}")
        if not 0.0 <= self.tax_rate <= 0.5:
            errors.append(f"tax_rate must be 0-0.5, got {self.tax_rate}")
        if not 0.0 <= self.transit_subsidy <= 1.0:
            errors.append(f"transit_subsidy must be 0-1, got {self.transit_subsidy}")
        if not 0.0 <= self.congestion_price_level <= 1.0:
            errors.append(f"congestion_price_level must be 0-1, got {self.congestion_price_level}")
        return errors

    def clamp(self) -> "SandboxControls":
        """Clamp all values to valid ranges."""
        self.density_multiplier = max(0.5, min(3.0, self.density_multiplier))
        self.transit_coverage = max(0.0, min(1.0, self.transit_coverage))
        self.road_capacity = max(0.5, min(3.0, self.road_capacity))
        self.parking_minimum = max(0.0, min(3.0, self.parking_minimum))
        self.tax_rate = max(0.0, min(0.5, self.tax_rate))
        self.transit_subsidy = max(0.0, min(1.0, self.transit_subsidy))
        self.congestion_price_level = max(0.0, min(1.0, self.congestion_price_level))
        return self
