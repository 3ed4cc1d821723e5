from __future__ import annotations

import logging

import pytest

from respimg.model.config import OptimizerConfig
from respimg.optimizer.run_logger import (
    log_error_policy,
    log_feature_availability,
    log_optimizer_configuration,
)

LOGGER = "respimg.optimizer.run_logger"


def test_log_optimizer_configuration(caplog: pytest.LogCaptureFixture) -> None:
    config = OptimizerConfig.from_cli(widths="400,800", formats="webp", quality=70, max_quality=None)
    with caplog.at_level(logging.INFO, logger=LOGGER):
        log_optimizer_configuration(config)
    assert "Widths: 400, 800" in caplog.text
    assert "Formats: webp" in caplog.text
    assert "Quality: 70 (flat)" in caplog.text


def test_log_optimizer_configuration_two_tier(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger=LOGGER):
        log_optimizer_configuration(OptimizerConfig())
    assert "Quality: 85, 90 for widths >= 2400 and full-size" in caplog.text


def test_log_feature_availability(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger=LOGGER):
        log_feature_availability("WEBP encoder", True)
        log_feature_availability("JPG encoder", False, "libjpeg missing")
        log_feature_availability("AVIF encoder", False)
    assert "WEBP encoder: Available" in caplog.text
    assert "JPG encoder: Unavailable - libjpeg missing" in caplog.text
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2


def test_log_error_policy(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger=LOGGER):
        log_error_policy("Optimizer", "image_failed", "skip", "bad.jpg")
        log_error_policy("Optimizer", "image_failed", "skip")
    assert "Optimizer error policy: image_failed -> skip (bad.jpg)" in caplog.text
    assert caplog.text.count("image_failed -> skip") == 2
