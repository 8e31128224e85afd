"""Tests for api/config.py -- config selection and production secret checks."""
import pytest

from api.config import (
    DEV_JWT_SECRET,
    DEV_REFRESH_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
    validate_config,
)


@pytest.mark.parametrize(
    "name, expected",
    [("prod", ProductionConfig), ("Production", ProductionConfig), ("testing", TestingConfig), ("dev", DevelopmentConfig)],
)
def test_get_config_by_name(name, expected):
    assert get_config(name) is expected


def test_token_defaults():
    assert TestingConfig.ACCESS_TOKEN_EXPIRES.total_seconds() == 3600
    assert TestingConfig.REFRESH_TOKEN_EXPIRES.days == 7
    assert TestingConfig.REFRESH_TOKEN_RETENTION == 5
    assert TestingConfig.JWT_ISSUER == "store2door"
    assert TestingConfig.JWT_AUDIENCE == "store2door-client"


def test_production_refuses_dev_secrets():
    with pytest.raises(RuntimeError):
        validate_config({"JWT_SECRET": DEV_JWT_SECRET, "REFRESH_SECRET": DEV_REFRESH_SECRET})
    with pytest.raises(RuntimeError):
        validate_config({"JWT_SECRET": "s" * 40, "REFRESH_SECRET": "s" * 40})
    validate_config({"JWT_SECRET": "a" * 40, "REFRESH_SECRET": "b" * 40})


def test_dev_and_testing_skip_secret_checks():
    validate_config({"DEBUG": True, "JWT_SECRET": DEV_JWT_SECRET, "REFRESH_SECRET": DEV_REFRESH_SECRET})
    validate_config({"TESTING": True, "JWT_SECRET": DEV_JWT_SECRET, "REFRESH_SECRET": DEV_REFRESH_SECRET})
