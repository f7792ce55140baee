import logging
from decimal import Decimal

from fintrack.config import Settings, configure_logging


def test_defaults():
    settings = Settings.from_env({})
    assert settings.level_divisor == 10
    assert settings.monthly_budget == Decimal("3500")
    assert settings.gemini_api_key == ""
    assert settings.log_level == "INFO"


def test_env_overrides():
    settings = Settings.from_env({
        "FINTRACK_DATA_DIR": "/tmp/ft",
        "FINTRACK_LEVEL_DIVISOR": "5",
        "FINTRACK_MONTHLY_BUDGET": "2000.50",
        "FINTRACK_EMERGENCY_FUND": "500",
        "GEMINI_API_KEY": "  abc  ",
        "FINTRACK_ADVISOR_TIMEOUT": "2.5",
        "FINTRACK_LOG_LEVEL": "debug",
    })
    assert settings.data_dir == "/tmp/ft"
    assert settings.level_divisor == 5
    assert settings.monthly_budget == Decimal("2000.50")
    assert settings.emergency_fund_target == Decimal("500")
    assert settings.gemini_api_key == "abc"
    assert settings.advisor_timeout == 2.5
    assert settings.log_level == "DEBUG"


def test_configure_logging_accepts_unknown_level():
    configure_logging("nonsense")
    assert logging.getLogger("fintrack").getEffectiveLevel() <= logging.WARNING
