from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from atcrisk.core.separation import DEFAULT_TIME_STEP
from atcrisk.core.units import Distance

DYNAMIC = "dynamic"
FIXED = "fixed"


@dataclass(frozen=True)
class AnalysisConfig:
    # how the separation time series is sampled: "dynamic" or "fixed"
    time_step_mode: str = DYNAMIC

    # only used when time_step_mode == "fixed"
    fixed_time_step: timedelta = DEFAULT_TIME_STEP

    # attach the per-sample dynamics table to each report
    publish_dynamics: bool = False

    # the dynamics table only covers the part of the encounter inside this radius
    dynamics_inclusion_radius: Distance = Distance.of_nautical_miles(15.0)

    def __post_init__(self):
        if self.time_step_mode not in (DYNAMIC, FIXED):
            raise ValueError(f"time_step_mode must be '{DYNAMIC}' or '{FIXED}', got {self.time_step_mode!r}")
        if self.fixed_time_step <= timedelta(0):
            raise ValueError("fixed_time_step must be positive")
        if self.dynamics_inclusion_radius.is_negative():
            raise ValueError("dynamics_inclusion_radius cannot be negative")
