"""Configuration system using pydantic-settings with environment variable loading."""

import decimal
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from perpcalc.logging import setup_logging

RoundingMode = Literal[
    "ROUND_HALF_EVEN",
    "ROUND_HALF_UP",
    "ROUND_HALF_DOWN",
    "ROUND_DOWN",
    "ROUND_UP",
    "ROUND_FLOOR",
    "ROUND_CEILING",
]


class EngineSettings(BaseSettings):
    """Decimal arithmetic settings applied to every engine call.

    Identical settings and inputs always produce identical outputs.
    All fields configurable via ENGINE_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="ENGINE_")

    decimal_precision: int = 34  # significant digits (IEEE decimal128)
    rounding: RoundingMode = "ROUND_HALF_EVEN"

    @field_validator("decimal_precision")
    @classmethod
    def _precision_in_range(cls, value: int) -> int:
        if not 8 <= value <= decimal.MAX_PREC:
            raise ValueError(f"decimal_precision must be between 8 and {decimal.MAX_PREC}")
        return value

    def decimal_context(self) -> decimal.Context:
        """Build a fresh Decimal context from these settings."""
        return decimal.Context(
            prec=self.decimal_precision,
            rounding=getattr(decimal, self.rounding),
            traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
        )


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    engine: EngineSettings = EngineSettings()

    def configure_logging(self) -> None:
        """Install the structlog setup at the configured level and format."""
        setup_logging(self.log_level, self.log_format)
