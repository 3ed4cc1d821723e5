from __future__ import annotations

import pytest

from respimg.loader.connection import ConnectionEstimate, QualityTier, select_quality


def test_defaults_describe_good_connection() -> None:
    estimate = ConnectionEstimate.from_mapping(None)
    assert estimate == ConnectionEstimate(effective_type="4g", save_data=False, rtt=50, downlink=10.0)
    assert select_quality(estimate) is QualityTier.HIGH


def test_from_mapping_fills_missing_keys() -> None:
    estimate = ConnectionEstimate.from_mapping({"effectiveType": "3g"})
    assert estimate.effective_type == "3g"
    assert estimate.save_data is False
    assert estimate.rtt == 50
    assert estimate.downlink == 10.0


def test_fast_connection_is_high() -> None:
    estimate = ConnectionEstimate.from_mapping(
        {"effectiveType": "4g", "downlink": 10, "saveData": False}
    )
    assert select_quality(estimate) is QualityTier.HIGH


@pytest.mark.parametrize("effective_type", ["4g", "3g", "2g", "slow-2g"])
@pytest.mark.parametrize("downlink", [0.1, 2.0, 50.0])
def test_save_data_always_low(effective_type: str, downlink: float) -> None:
    estimate = ConnectionEstimate(effective_type=effective_type, save_data=True, downlink=downlink)
    assert select_quality(estimate) is QualityTier.LOW


@pytest.mark.parametrize(
    ("data", "tier"),
    [
        ({"effectiveType": "slow-2g"}, QualityTier.LOW),
        ({"effectiveType": "2g"}, QualityTier.LOW),
        ({"effectiveType": "4g", "downlink": 0.5}, QualityTier.LOW),
        ({"effectiveType": "3g"}, QualityTier.MEDIUM),
        ({"effectiveType": "4g", "downlink": 4.9}, QualityTier.MEDIUM),
        ({"effectiveType": "4g", "downlink": 5}, QualityTier.HIGH),
    ],
)
def test_tier_precedence(data: dict[str, object], tier: QualityTier) -> None:
    assert select_quality(ConnectionEstimate.from_mapping(data)) is tier


def test_only_high_keeps_original_format() -> None:
    assert QualityTier.LOW.prefers_compressed
    assert QualityTier.MEDIUM.prefers_compressed
    assert not QualityTier.HIGH.prefers_compressed
