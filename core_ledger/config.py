"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Literal, Optional


class LedgerConfig(BaseSettings):
    """Core ledger configuration"""

    # Logging configuration
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Optional[str] = None  # If None, logs to stderr

    # Business rules configuration
    days_in_year: int = 365  # Divisor turning the annualized sum into monthly interest
    transaction_sequence_scope: Literal["global", "account"] = "global"
    strict_type_code: bool = False  # Raise instead of returning INVALID_TYPE_CODE

    # Feature flags
    enable_audit_logging: bool = True

    # Console configuration
    bank_name: str = "AwesomeGIC Bank"

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
