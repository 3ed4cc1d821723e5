"""Network-quality estimation for image variant selection."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

SLOW_TYPES = frozenset({"slow-2g", "2g"})
MEDIUM_TYPES = frozenset({"3g"})

# Downlink thresholds in Mbps
LOW_DOWNLINK = 1.0
MEDIUM_DOWNLINK = 5.0


class QualityTier(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def prefers_compressed(self) -> bool:
        return self is not QualityTier.HIGH


@dataclass(frozen=True)
class ConnectionEstimate:
    """Snapshot of the browser's network information.

    Defaults describe a good connection and are used whenever the capability
    is missing or leaves a field unset.
    """

    effective_type: str = "4g"
    save_data: bool = False
    rtt: float = 50
    downlink: float = 10.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ConnectionEstimate:
        """Build an estimate from ``navigator.connection``-style keys."""
        if not data:
            return cls()
        default = cls()

        def _pick(*keys: str) -> Any:
            for key in keys:
                value = data.get(key)
                if value is not None:
                    return value
            return None

        effective_type = _pick("effectiveType", "effective_type")
        save_data = _pick("saveData", "save_data")
        rtt = _pick("rtt")
        downlink = _pick("downlink")
        return cls(
            effective_type=str(effective_type) if effective_type else default.effective_type,
            save_data=bool(save_data) if save_data is not None else default.save_data,
            rtt=float(rtt) if rtt is not None else default.rtt,
            downlink=float(downlink) if downlink is not None else default.downlink,
        )


def select_quality(estimate: ConnectionEstimate) -> QualityTier:
    """Map a connection estimate to a quality tier.

    Data saver always wins, then slow connection types, then downlink.
    """
    if (
        estimate.save_data
        or estimate.effective_type in SLOW_TYPES
        or estimate.downlink < LOW_DOWNLINK
    ):
        return QualityTier.LOW
    if estimate.effective_type in MEDIUM_TYPES or estimate.downlink < MEDIUM_DOWNLINK:
        return QualityTier.MEDIUM
    return QualityTier.HIGH


__all__ = ["ConnectionEstimate", "QualityTier", "select_quality"]
