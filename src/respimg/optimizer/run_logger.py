"""Centralized decision logging for respimg batch runs.

These helpers log configuration and error-policy decisions for debugging and
troubleshooting. User-facing progress is handled separately by
``respimg.ui.progress.ProgressReporter``.
"""

from __future__ import annotations

import logging

from respimg.model.config import OptimizerConfig

logger = logging.getLogger(__name__)


def log_optimizer_configuration(config: OptimizerConfig) -> None:
    """Log the run configuration.

    Args:
        config: Optimizer configuration to log
    """
    logger.info("Optimizer configuration:")
    logger.info("  Source: %s (%s)", config.source_dir, ", ".join(config.source_formats))
    logger.info("  Target: %s", config.target_dir)
    logger.info("  Widths: %s", ", ".join(str(w) for w in config.widths))
    logger.info("  Formats: %s", ", ".join(fmt.value for fmt in config.formats))
    if config.quality.is_flat:
        logger.info("  Quality: %d (flat)", config.quality.standard)
    else:
        logger.info(
            "  Quality: %d, %d for widths >= %d and full-size",
            config.quality.standard,
            config.quality.maximum,
            config.quality.large_threshold,
        )
    logger.info("  Fit: %s", config.fit.value)
    logger.info("  Skip existing: %s", "yes" if config.skip_existing else "no")
    logger.info("  Workers: %d", config.workers)


def log_feature_availability(feature: str, available: bool, reason: str | None = None) -> None:
    """Log feature availability status.

    Args:
        feature: Name of the feature (e.g., "WebP encoder")
        available: Whether the feature is available
        reason: Optional reason for unavailability
    """
    if available:
        logger.info("%s: Available", feature)
    elif reason:
        logger.warning("%s: Unavailable - %s", feature, reason)
    else:
        logger.warning("%s: Unavailable", feature)


def log_error_policy(
    feature: str, error_type: str, action: str, details: str | None = None
) -> None:
    """Log error handling policy decisions.

    Args:
        feature: Name of the step encountering the error
        error_type: Type of error (e.g., "decode_failed", "write_failed")
        action: Action taken (e.g., "skip", "fallback", "abort")
        details: Optional additional details
    """
    if details:
        logger.warning("%s error policy: %s -> %s (%s)", feature, error_type, action, details)
    else:
        logger.warning("%s error policy: %s -> %s", feature, error_type, action)


__all__ = [
    "log_error_policy",
    "log_feature_availability",
    "log_optimizer_configuration",
]
