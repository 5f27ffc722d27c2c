"""
Configuration management.
"""

import os
from dataclasses import dataclass, field


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Comparables
    max_comparables: int = field(
        default_factory=lambda: int(os.getenv("MAX_COMPARABLES", "5"))
    )

    # Forecasting
    forecast_years: int = field(default_factory=lambda: int(os.getenv("FORECAST_YEARS", "3")))
    forecast_model: str = field(
        default_factory=lambda: os.getenv("FORECAST_MODEL", "linear").lower()
    )
    default_growth_rate: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_GROWTH_RATE", "0.03"))
    )

    # Batch work (neighborhood forecasts); 0 lets the executor decide
    batch_workers: int = field(default_factory=lambda: int(os.getenv("BATCH_WORKERS", "0")))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "max_comparables": self.max_comparables,
            "forecast_years": self.forecast_years,
            "forecast_model": self.forecast_model,
            "default_growth_rate": self.default_growth_rate,
            "batch_workers": self.batch_workers,
        }
