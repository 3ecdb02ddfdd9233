"""
daogov Configuration

Loads daogov.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    GovernanceSettings,
    LoggingSettings,
    ThresholdSettings,
    VetoSettings,
    load_config,
    parse_percentage,
)

__all__ = [
    "GovernanceSettings",
    "LoggingSettings",
    "ThresholdSettings",
    "VetoSettings",
    "load_config",
    "parse_percentage",
]
