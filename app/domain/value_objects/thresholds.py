"""ComplianceThresholds: tunable limits used by trip classification and ticket completion."""

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class ComplianceThresholds:
    """Deployment-specific limits.

    min_entry_volume_ratio: a loaded vehicle must arrive with at least this
        share of its body volume, otherwise the entry is suspicious.
    exit_volume_tolerance: residual volume (m³) still considered "empty" on exit.
    area_work_window: how far a GPS fix may be from the entry time and still
        count as evidence of where the vehicle worked.
    """

    min_entry_volume_ratio: float
    exit_volume_tolerance: float
    area_work_window: timedelta = timedelta(minutes=10)

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_entry_volume_ratio <= 1.0:
            raise ValueError(
                f"min_entry_volume_ratio must be within [0, 1], got {self.min_entry_volume_ratio}"
            )
        if self.exit_volume_tolerance < 0:
            raise ValueError(
                f"exit_volume_tolerance must be non-negative, got {self.exit_volume_tolerance}"
            )
