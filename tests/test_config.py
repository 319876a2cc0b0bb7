"""Tests for configuration loading and validation."""

import pytest

from booking_engine.config import (
    AppConfig,
    PublicChannelConfig,
    SchedulingConfig,
    StorageConfig,
    _validate_config,
    settings,
)
from booking_engine.schemas.organization_schema import OrganizationConfig


def _config(**overrides) -> AppConfig:
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "scheduling", overrides.get("scheduling", SchedulingConfig()))
    object.__setattr__(config, "storage", overrides.get("storage", StorageConfig()))
    object.__setattr__(config, "public", overrides.get("public", PublicChannelConfig()))
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "engine_name", "test")
    return config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.scheduling.slot_step_minutes == 30
        assert config.public.honeypot_field == "_hp"
        assert config.storage.timeout_seconds > 0

    def test_zero_step_rejected(self):
        scheduling = SchedulingConfig.__new__(SchedulingConfig)
        object.__setattr__(scheduling, "slot_step_minutes", 0)
        object.__setattr__(scheduling, "default_locale", "en")

        with pytest.raises(ValueError, match="SLOT_STEP_MINUTES"):
            _validate_config(_config(scheduling=scheduling))

    def test_step_longer_than_a_day_rejected(self):
        scheduling = SchedulingConfig.__new__(SchedulingConfig)
        object.__setattr__(scheduling, "slot_step_minutes", 1441)
        object.__setattr__(scheduling, "default_locale", "en")

        with pytest.raises(ValueError, match="SLOT_STEP_MINUTES"):
            _validate_config(_config(scheduling=scheduling))

    def test_non_positive_timeout_rejected(self):
        storage = StorageConfig.__new__(StorageConfig)
        object.__setattr__(storage, "timeout_seconds", 0.0)

        with pytest.raises(ValueError, match="STORAGE_TIMEOUT_SECONDS"):
            _validate_config(_config(storage=storage))

    def test_blank_honeypot_field_rejected(self):
        public = PublicChannelConfig.__new__(PublicChannelConfig)
        object.__setattr__(public, "honeypot_field", "  ")

        with pytest.raises(ValueError, match="HONEYPOT_FIELD"):
            _validate_config(_config(public=public))

    def test_safe_int_parsing(self):
        from booking_engine.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from booking_engine.config import _safe_int

        monkeypatch.setenv("BOOKING_TEST_INT", "thirty")
        with pytest.raises(ValueError, match="BOOKING_TEST_INT"):
            _safe_int("BOOKING_TEST_INT", "30")

    def test_safe_float_parsing(self):
        from booking_engine.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)


class TestOrganizationDefaults:
    def test_locale_defaults_to_configured_locale(self):
        organization = OrganizationConfig(id="org_1", name="Acme")
        assert organization.locale == settings.scheduling.default_locale
