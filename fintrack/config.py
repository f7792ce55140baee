import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    data_dir: str = os.path.join("data", "store")
    level_divisor: int = 10
    monthly_budget: Decimal = Decimal("3500")
    streak_target: int = 7
    transaction_target: int = 50
    emergency_fund_target: Decimal = Decimal("1000")
    max_goal_target: Decimal = Decimal("1000000")
    max_deposit: Decimal = Decimal("100000")
    gemini_api_key: str = ""
    advisor_timeout: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            data_dir=env.get("FINTRACK_DATA_DIR", defaults.data_dir),
            level_divisor=int(env.get("FINTRACK_LEVEL_DIVISOR", defaults.level_divisor)),
            monthly_budget=Decimal(env.get("FINTRACK_MONTHLY_BUDGET", str(defaults.monthly_budget))),
            streak_target=int(env.get("FINTRACK_STREAK_TARGET", defaults.streak_target)),
            transaction_target=int(env.get("FINTRACK_TRANSACTION_TARGET", defaults.transaction_target)),
            emergency_fund_target=Decimal(
                env.get("FINTRACK_EMERGENCY_FUND", str(defaults.emergency_fund_target))
            ),
            gemini_api_key=(env.get("GEMINI_API_KEY") or "").strip(),
            advisor_timeout=float(env.get("FINTRACK_ADVISOR_TIMEOUT", defaults.advisor_timeout)),
            log_level=env.get("FINTRACK_LOG_LEVEL", defaults.log_level).upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
