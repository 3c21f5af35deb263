"""Engine configuration loaded from the environment.

Environment variables:
    KONVEKSI_DOZEN_THRESHOLD: Dozen threshold for `konveksi quote` documents whose
        tier sets none; order tiers carry their own (default: 12)
    KONVEKSI_DOWN_PAYMENT_PERCENT: Down payment share of the order total (default: 30)
    KONVEKSI_ADMIN_PAYMENT_OVERRIDE: Let admin skip the full-payment check
        before "ready to ship" (default: false)
    KONVEKSI_UNITS_PER_PRODUCTION_DAY: Production capacity (default: 100)
    KONVEKSI_CUSTOM_DESIGN_EXTRA_DAYS: Extra days for custom artwork (default: 2)
    KONVEKSI_LOG_LEVEL: structlog level name (default: INFO)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import InvalidInput

ENV_PREFIX = "KONVEKSI_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class EngineConfig:
    dozen_threshold: int = 12
    down_payment_percent: int = 30
    admin_payment_override: bool = False
    units_per_production_day: int = 100
    custom_design_extra_days: int = 2
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``KONVEKSI_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        config = cls(
            dozen_threshold=_int(env, "DOZEN_THRESHOLD", defaults.dozen_threshold),
            down_payment_percent=_int(env, "DOWN_PAYMENT_PERCENT", defaults.down_payment_percent),
            admin_payment_override=_bool(env, "ADMIN_PAYMENT_OVERRIDE", defaults.admin_payment_override),
            units_per_production_day=_int(
                env, "UNITS_PER_PRODUCTION_DAY", defaults.units_per_production_day
            ),
            custom_design_extra_days=_int(
                env, "CUSTOM_DESIGN_EXTRA_DAYS", defaults.custom_design_extra_days
            ),
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.dozen_threshold <= 0:
            raise InvalidInput("KONVEKSI_DOZEN_THRESHOLD must be positive")
        if not 0 <= self.down_payment_percent <= 100:
            raise InvalidInput("KONVEKSI_DOWN_PAYMENT_PERCENT must be between 0 and 100")
        if self.units_per_production_day <= 0:
            raise InvalidInput("KONVEKSI_UNITS_PER_PRODUCTION_DAY must be positive")
        if self.custom_design_extra_days < 0:
            raise InvalidInput("KONVEKSI_CUSTOM_DESIGN_EXTRA_DAYS cannot be negative")
        if self.log_level not in _LOG_LEVELS:
            raise InvalidInput(f"KONVEKSI_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}")


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidInput(f"{ENV_PREFIX}{name} must be an integer", e) from e


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise InvalidInput(f"{ENV_PREFIX}{name} must be a boolean")
