"""
Configuration loader tests

Coverage:
  - TOML loading, defaults and the missing-file fallback
  - DAOGOV_* environment overrides
  - percentage parsing and validation errors
  - conversion to ProposalConfig for both module kinds
  - applying the [logging] section to the daogov logger
"""

import logging
import os
import sys
from decimal import Decimal

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from daogov.config import (
    GovernanceSettings,
    ThresholdSettings,
    load_config,
    parse_percentage,
)
from daogov.config.loader import make_duration
from daogov.exceptions import ConfigurationError, GovernanceError
from daogov.governance.choices import SingleChoice
from daogov.governance.expiration import Height, Time
from daogov.governance.threshold import (
    AbsoluteCount,
    AbsolutePercentage,
    Majority,
    Percent,
    ThresholdQuorum,
)
from daogov.governance.veto import VetoConfig
from daogov.logger import LogManager

ENV_VARS = (
    "DAOGOV_CONFIG",
    "DAOGOV_DAO_ADDRESS",
    "DAOGOV_PERIOD_UNIT",
    "DAOGOV_MAX_VOTING_PERIOD",
    "DAOGOV_MIN_VOTING_PERIOD",
    "DAOGOV_ALLOW_REVOTING",
    "DAOGOV_ONLY_MEMBERS_EXECUTE",
    "DAOGOV_VETOER",
    "DAOGOV_LOG_LEVEL",
)

SAMPLE_TOML = """
[governance]
dao = "dao-core"
kind = "single"
period_unit = "time"
max_voting_period = 86400
min_voting_period = 3600
allow_revoting = true

[governance.threshold]
type = "threshold_quorum"
threshold = "0.6"
quorum = "0.25"

[governance.veto]
enabled = true
vetoer = "council"
timelock = 7200
early_execute = true

[logging]
level = "DEBUG"
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    LogManager().reconfigure()


def write_config(tmp_path, text=SAMPLE_TOML):
    path = tmp_path / "daogov.toml"
    path.write_text(text)
    return path


# ══════════════════════════════════════════════════════════════════════
#  LOADING
# ══════════════════════════════════════════════════════════════════════

class TestLoading:

    def test_from_file(self, tmp_path):
        cfg = GovernanceSettings.from_file(write_config(tmp_path))
        assert cfg.dao == "dao-core"
        assert cfg.period_unit == "time"
        assert cfg.max_voting_period == 86400
        assert cfg.allow_revoting is True
        assert cfg.only_members_execute is True
        assert cfg.threshold.threshold == "0.6"
        assert cfg.veto.vetoer == "council"
        assert cfg.logging.level == "DEBUG"
        assert cfg.validate() is True

    def test_to_proposal_config(self, tmp_path):
        config = GovernanceSettings.from_file(write_config(tmp_path)).to_proposal_config()
        assert config.dao == "dao-core"
        assert config.max_voting_period == Time(86400)
        assert config.min_voting_period == Time(3600)
        assert config.threshold == ThresholdQuorum(
            threshold=Percent(Decimal("0.6")), quorum=Percent(Decimal("0.25"))
        )
        assert config.voting_strategy is None
        assert config.veto == VetoConfig(
            timelock_duration=Time(7200), vetoer="council", early_execute=True
        )

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAOGOV_DAO_ADDRESS", "env-dao")
        cfg = GovernanceSettings.from_file(tmp_path / "absent.toml")
        assert cfg.dao == "env-dao"
        assert cfg.kind == "single"
        assert cfg.max_voting_period == 100
        config = cfg.to_proposal_config()
        assert config.threshold == ThresholdQuorum(
            threshold=Majority(), quorum=Percent(Decimal("0.2"))
        )
        assert config.min_voting_period is None
        assert config.veto is None

    def test_invalid_toml(self, tmp_path):
        path = write_config(tmp_path, "[governance\ndao = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            GovernanceSettings.from_file(path)

    def test_load_config_from_env_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAOGOV_CONFIG", str(write_config(tmp_path)))
        assert load_config().dao == "dao-core"

    def test_load_config_explicit_path(self, tmp_path):
        assert load_config(str(write_config(tmp_path))).period_unit == "time"

    def test_load_config_applies_log_level(self, tmp_path):
        load_config(str(write_config(tmp_path)))
        assert logging.getLogger("daogov").level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in logging.getLogger("daogov").handlers)

    def test_log_level_env_override_applied(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAOGOV_LOG_LEVEL", "warning")
        load_config(str(write_config(tmp_path)))
        assert logging.getLogger("daogov").level == logging.WARNING

    def test_invalid_log_level_not_applied(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAOGOV_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError, match="log level"):
            load_config(str(write_config(tmp_path)))

    def test_shipped_config_is_valid(self):
        cfg = load_config(os.path.join(ROOT, "daogov.toml"))
        assert cfg.validate() is True
        assert cfg.to_proposal_config().max_voting_period == Height(100)


# ══════════════════════════════════════════════════════════════════════
#  ENVIRONMENT OVERRIDES
# ══════════════════════════════════════════════════════════════════════

class TestEnvOverrides:

    def test_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAOGOV_DAO_ADDRESS", "other-dao")
        monkeypatch.setenv("DAOGOV_MAX_VOTING_PERIOD", "500")
        monkeypatch.setenv("DAOGOV_ALLOW_REVOTING", "False")
        monkeypatch.setenv("DAOGOV_LOG_LEVEL", "WARNING")
        cfg = GovernanceSettings.from_file(write_config(tmp_path))
        assert cfg.dao == "other-dao"
        assert cfg.max_voting_period == 500
        assert cfg.allow_revoting is False
        assert cfg.logging.level == "WARNING"

    def test_vetoer_env_enables_veto(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAOGOV_VETOER", "guardian")
        cfg = GovernanceSettings.from_file(tmp_path / "absent.toml")
        assert cfg.veto.enabled
        assert cfg.veto.vetoer == "guardian"

    def test_bad_bool(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAOGOV_ONLY_MEMBERS_EXECUTE", "sometimes")
        with pytest.raises(ConfigurationError):
            GovernanceSettings.from_file(write_config(tmp_path))


# ══════════════════════════════════════════════════════════════════════
#  PARSING AND VALIDATION
# ══════════════════════════════════════════════════════════════════════

class TestParsing:

    def test_parse_percentage(self):
        assert parse_percentage("majority") == Majority()
        assert parse_percentage(" Majority ") == Majority()
        assert parse_percentage("0.5") == Percent(Decimal("0.5"))
        assert parse_percentage(0.1) == Percent(Decimal("0.1"))
        assert parse_percentage(1) == Percent(Decimal(1))

    @pytest.mark.parametrize("value", ["half", "-0.5", None])
    def test_parse_percentage_invalid(self, value):
        with pytest.raises(ConfigurationError):
            parse_percentage(value)

    def test_make_duration(self):
        assert make_duration(5, "height") == Height(5)
        assert make_duration(5, "time") == Time(5)
        with pytest.raises(ConfigurationError):
            make_duration(5, "epochs")

    def test_threshold_types(self):
        assert ThresholdSettings(type="absolute_count", count=3).to_threshold() == AbsoluteCount(3)
        assert ThresholdSettings(
            type="absolute_percentage", percentage="0.75"
        ).to_threshold() == AbsolutePercentage(Percent(Decimal("0.75")))
        with pytest.raises(ConfigurationError):
            ThresholdSettings(type="unanimous").to_threshold()

    def test_multiple_kind_uses_quorum(self):
        cfg = GovernanceSettings(dao="dao", kind="multiple")
        config = cfg.to_proposal_config()
        assert config.threshold is None
        assert config.voting_strategy == SingleChoice(quorum=Percent(Decimal("0.2")))
        assert cfg.validate() is True


class TestValidation:

    def test_missing_dao(self):
        with pytest.raises(ConfigurationError, match="dao"):
            GovernanceSettings().validate()

    def test_bad_kind(self):
        with pytest.raises(ConfigurationError):
            GovernanceSettings(dao="dao", kind="ranked").validate()

    def test_bad_unit(self):
        with pytest.raises(ConfigurationError):
            GovernanceSettings(dao="dao", period_unit="epochs").validate()

    def test_negative_period(self):
        with pytest.raises(ConfigurationError):
            GovernanceSettings(dao="dao", max_voting_period=-1).validate()

    def test_bad_log_level(self):
        cfg = GovernanceSettings(dao="dao")
        cfg.logging.level = "LOUD"
        with pytest.raises(ConfigurationError):
            cfg.validate()

    def test_zero_threshold_is_a_governance_error(self):
        cfg = GovernanceSettings(dao="dao", threshold=ThresholdSettings(threshold="0"))
        with pytest.raises(GovernanceError):
            cfg.validate()

    def test_min_longer_than_max(self):
        cfg = GovernanceSettings(dao="dao", max_voting_period=10, min_voting_period=20)
        with pytest.raises(GovernanceError):
            cfg.validate()

    def test_to_dict(self):
        data = GovernanceSettings(dao="dao").to_dict()
        assert data["governance"]["dao"] == "dao"
        assert data["governance"]["threshold"]["quorum"] == "0.2"
        assert data["logging"] == {"level": "INFO", "file_output": False}
