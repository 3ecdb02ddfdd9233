"""
daogov TOML Configuration Loader

Loads a proposal module's configuration from daogov.toml with environment
variable overrides, and turns it into a ``ProposalConfig``.

Environment variable mapping:
    [governance] dao                → DAOGOV_DAO_ADDRESS
    [governance] max_voting_period  → DAOGOV_MAX_VOTING_PERIOD
    [governance] min_voting_period  → DAOGOV_MIN_VOTING_PERIOD
    [governance] period_unit        → DAOGOV_PERIOD_UNIT
    [governance] allow_revoting     → DAOGOV_ALLOW_REVOTING
    [governance.veto] vetoer        → DAOGOV_VETOER
    [logging] level                 → DAOGOV_LOG_LEVEL

Percentages are written as strings ("0.5", "majority") so that they are
read as exact decimals.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import DAOGOV_CONFIG, DAOGOV_DAO_ADDRESS, parse_bool
from ..exceptions import ConfigurationError
from ..logger import LogManager
from ..governance.choices import SingleChoice
from ..governance.expiration import Duration, Height, Time
from ..governance.module import ProposalConfig
from ..governance.threshold import (
    AbsoluteCount,
    AbsolutePercentage,
    Majority,
    Percent,
    PercentageThreshold,
    Threshold,
    ThresholdError,
    ThresholdQuorum,
)
from ..governance.veto import VetoConfig

logger = logging.getLogger(__name__)

PERIOD_UNITS = ("height", "time")
THRESHOLD_TYPES = ("absolute_count", "absolute_percentage", "threshold_quorum")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str) -> Optional[bool]:
    v = os.environ.get(name)
    if v is None or not v.strip():
        return None
    parsed = parse_bool(v)
    if not isinstance(parsed, bool):
        raise ConfigurationError(f"{name} must be true or false, got {v!r}")
    return parsed


def parse_percentage(value: Any) -> PercentageThreshold:
    """``"majority"`` or a decimal fraction such as ``"0.5"``."""
    if isinstance(value, str) and value.strip().lower() == "majority":
        return Majority()
    if isinstance(value, float):
        # TOML floats are binary; go through str to keep the written digits.
        value = str(value)
    try:
        return Percent(Decimal(value))
    except (ThresholdError, ArithmeticError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid percentage: {value!r}") from e


def make_duration(value: int, unit: str) -> Duration:
    if unit == "height":
        return Height(int(value))
    if unit == "time":
        return Time(int(value))
    raise ConfigurationError(f"Invalid period unit: {unit!r} (expected one of {PERIOD_UNITS})")


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class ThresholdSettings:
    """[governance.threshold] section."""
    type: str = "threshold_quorum"
    count: int = 1
    percentage: str = "majority"
    threshold: str = "majority"
    quorum: str = "0.2"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThresholdSettings":
        return cls(
            type=data.get("type", "threshold_quorum"),
            count=data.get("count", 1),
            percentage=data.get("percentage", "majority"),
            threshold=data.get("threshold", "majority"),
            quorum=data.get("quorum", "0.2"),
        )

    def validate(self) -> None:
        if self.type not in THRESHOLD_TYPES:
            raise ConfigurationError(
                f"Invalid threshold type: {self.type!r} (expected one of {THRESHOLD_TYPES})"
            )

    def to_threshold(self) -> Threshold:
        self.validate()
        if self.type == "absolute_count":
            return AbsoluteCount(int(self.count))
        if self.type == "absolute_percentage":
            return AbsolutePercentage(parse_percentage(self.percentage))
        return ThresholdQuorum(
            threshold=parse_percentage(self.threshold),
            quorum=parse_percentage(self.quorum),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "count": self.count,
            "percentage": str(self.percentage),
            "threshold": str(self.threshold),
            "quorum": str(self.quorum),
        }


@dataclass
class VetoSettings:
    """[governance.veto] section."""
    enabled: bool = False
    vetoer: str = ""
    timelock: int = 0
    early_execute: bool = False
    veto_before_passed: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VetoSettings":
        return cls(
            enabled=data.get("enabled", False),
            vetoer=data.get("vetoer", ""),
            timelock=data.get("timelock", 0),
            early_execute=data.get("early_execute", False),
            veto_before_passed=data.get("veto_before_passed", False),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DAOGOV_VETOER"):
            self.vetoer = v
            self.enabled = True

    def to_veto_config(self, unit: str) -> Optional[VetoConfig]:
        if not self.enabled:
            return None
        return VetoConfig(
            timelock_duration=make_duration(self.timelock, unit),
            vetoer=self.vetoer,
            early_execute=self.early_execute,
            veto_before_passed=self.veto_before_passed,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "vetoer": self.vetoer,
            "timelock": self.timelock,
            "early_execute": self.early_execute,
            "veto_before_passed": self.veto_before_passed,
        }


@dataclass
class LoggingSettings:
    """[logging] section."""
    level: str = "INFO"
    file_output: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSettings":
        return cls(
            level=data.get("level", "INFO"),
            file_output=data.get("file_output", False),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DAOGOV_LOG_LEVEL"):
            self.level = v

    def validate(self) -> None:
        if self.level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.level}")

    def apply(self) -> None:
        """Rebuild the daogov logger handlers from this section."""
        self.validate()
        LogManager().reconfigure(
            log_level=self.level.upper(), file_output=self.file_output
        )


@dataclass
class GovernanceSettings:
    """
    Top-level settings: the [governance] table plus [logging].

    ``kind`` selects the proposal module: "single" uses ``threshold``,
    "multiple" uses ``threshold.quorum`` as its voting strategy quorum.
    """
    dao: str = ""
    kind: str = "single"
    period_unit: str = "height"
    max_voting_period: int = 100
    min_voting_period: int = 0
    only_members_execute: bool = True
    allow_revoting: bool = False
    close_proposal_on_execution_failure: bool = True
    threshold: ThresholdSettings = field(default_factory=ThresholdSettings)
    veto: VetoSettings = field(default_factory=VetoSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceSettings":
        gov = data.get("governance", {})
        return cls(
            dao=gov.get("dao", str(DAOGOV_DAO_ADDRESS)),
            kind=gov.get("kind", "single"),
            period_unit=gov.get("period_unit", "height"),
            max_voting_period=gov.get("max_voting_period", 100),
            min_voting_period=gov.get("min_voting_period", 0),
            only_members_execute=gov.get("only_members_execute", True),
            allow_revoting=gov.get("allow_revoting", False),
            close_proposal_on_execution_failure=gov.get(
                "close_proposal_on_execution_failure", True
            ),
            threshold=ThresholdSettings.from_dict(gov.get("threshold", {})),
            veto=VetoSettings.from_dict(gov.get("veto", {})),
            logging=LoggingSettings.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str | Path) -> "GovernanceSettings":
        """
        Load settings from a TOML file. A missing file yields the defaults
        (with env overrides applied).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls(dao=str(DAOGOV_DAO_ADDRESS))
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            try:
                raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        if v := os.environ.get("DAOGOV_DAO_ADDRESS"):
            self.dao = v
        if v := os.environ.get("DAOGOV_PERIOD_UNIT"):
            self.period_unit = v
        if v := os.environ.get("DAOGOV_MAX_VOTING_PERIOD"):
            self.max_voting_period = int(v)
        if v := os.environ.get("DAOGOV_MIN_VOTING_PERIOD"):
            self.min_voting_period = int(v)
        if (b := _env_bool("DAOGOV_ALLOW_REVOTING")) is not None:
            self.allow_revoting = b
        if (b := _env_bool("DAOGOV_ONLY_MEMBERS_EXECUTE")) is not None:
            self.only_members_execute = b
        self.veto.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate settings and the proposal config they produce.

        Raises:
            ConfigurationError: on invalid settings
            GovernanceError:    on an invalid threshold or voting period
        """
        if not self.dao:
            raise ConfigurationError("governance.dao (or DAOGOV_DAO_ADDRESS) is required")
        if self.kind not in ("single", "multiple"):
            raise ConfigurationError(f"Invalid module kind: {self.kind!r}")
        if self.period_unit not in PERIOD_UNITS:
            raise ConfigurationError(f"Invalid period unit: {self.period_unit!r}")
        if self.max_voting_period < 0 or self.min_voting_period < 0:
            raise ConfigurationError("Voting periods must be non-negative")
        self.threshold.validate()
        self.logging.validate()
        self.to_proposal_config().validate()
        return True

    # --- conversion -------------------------------------------------------

    def to_proposal_config(self) -> ProposalConfig:
        unit = self.period_unit
        threshold = None
        voting_strategy = None
        if self.kind == "multiple":
            voting_strategy = SingleChoice(quorum=parse_percentage(self.threshold.quorum))
        else:
            threshold = self.threshold.to_threshold()
        return ProposalConfig(
            dao=self.dao,
            max_voting_period=make_duration(self.max_voting_period, unit),
            threshold=threshold,
            voting_strategy=voting_strategy,
            min_voting_period=(
                make_duration(self.min_voting_period, unit) if self.min_voting_period else None
            ),
            only_members_execute=self.only_members_execute,
            allow_revoting=self.allow_revoting,
            close_proposal_on_execution_failure=self.close_proposal_on_execution_failure,
            veto=self.veto.to_veto_config(unit),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "governance": {
                "dao": self.dao,
                "kind": self.kind,
                "period_unit": self.period_unit,
                "max_voting_period": self.max_voting_period,
                "min_voting_period": self.min_voting_period,
                "only_members_execute": self.only_members_execute,
                "allow_revoting": self.allow_revoting,
                "close_proposal_on_execution_failure": self.close_proposal_on_execution_failure,
                "threshold": self.threshold.to_dict(),
                "veto": self.veto.to_dict(),
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> GovernanceSettings:
    """
    Load governance settings.

    Resolution order:
        1. Explicit *path* argument
        2. DAOGOV_CONFIG env var (or .env)
        3. ./daogov.toml in current directory
        4. Defaults (with env overrides)

    The [logging] section is applied to the daogov logger.
    """
    if path is None:
        path = os.environ.get("DAOGOV_CONFIG", str(DAOGOV_CONFIG))

    cfg = GovernanceSettings.from_file(path)
    cfg.logging.apply()
    return cfg
