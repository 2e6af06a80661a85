# track_config.py
# All tuneable constants in one place.
# Pass a TrackConfig instance to every module that needs settings.

from dataclasses import dataclass, replace
from typing import Optional

from .models import StepMode


# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------

CITY_SPEED_KMH: float = 30.0           # customer-side tracking estimate
DIRECTIONS_SPEED_KMH: float = 40.0     # mechanic-side directions estimate

DISPLAY_ARRIVED_KM: float = 0.1        # below this the views show "Arrived"


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrackConfig:
    # Clock
    tick_interval_ms: int = 1000

    # Movement
    step_mode: StepMode = StepMode.DISCRETE
    speed_fraction: float = 0.15           # interpolated mode: share of the gap closed per tick
    assumed_speed_kmh: float = CITY_SPEED_KMH
    arrival_threshold_km: float = 0.1

    # Route synthesis
    point_count: int = 20
    wobble_factor: float = 0.1             # wobble = min(distance_km * factor, cap)
    wobble_cap_deg: float = 0.005
    random_seed: Optional[int] = None      # None = fresh entropy per session

    # Map viewport
    bounds_padding: float = 0.25

    def __post_init__(self) -> None:
        if self.tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be positive.")
        if not 0.0 < self.speed_fraction <= 1.0:
            raise ValueError("speed_fraction must be in (0, 1].")
        if self.assumed_speed_kmh <= 0:
            raise ValueError("assumed_speed_kmh must be positive.")
        if self.arrival_threshold_km <= 0:
            raise ValueError("arrival_threshold_km must be positive.")
        if self.point_count < 1:
            raise ValueError("point_count must be at least 1.")
        if self.wobble_factor < 0 or self.wobble_cap_deg < 0:
            raise ValueError("wobble settings must not be negative.")

    @property
    def tick_interval_s(self) -> float:
        return self.tick_interval_ms / 1000.0

    def with_overrides(self, **changes) -> "TrackConfig":
        """Copy of this config with some fields replaced (validated again)."""
        return replace(self, **changes)


# ---------------------------------------------------------------------------
# Presets. The two tracking screens disagree; neither is canonical.
# ---------------------------------------------------------------------------

CUSTOMER_TRACKING = TrackConfig()

MECHANIC_DIRECTIONS = TrackConfig(
    step_mode=StepMode.INTERPOLATED,
    speed_fraction=0.15,
    assumed_speed_kmh=DIRECTIONS_SPEED_KMH,
    arrival_threshold_km=0.05,
    point_count=15,
    wobble_factor=0.01,
    wobble_cap_deg=0.01,
)
