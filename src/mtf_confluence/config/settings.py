"""
Centralized settings for the Multi-Timeframe Confluence Engine.

Code defaults live here and can be overridden through environment variables
or a local .env file. Component thresholds are kept separately in
``signal_generation.py``.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """
    Configuration for structured logging.
    """
    model_config = SettingsConfigDict(env_prefix='LOG_')

    LEVEL: str = "INFO"
    JSON: Optional[bool] = None  # None picks JSON only when stderr is not a TTY


class EngineSettings(BaseSettings):
    """
    Configuration for the decision engine runtime.
    """
    model_config = SettingsConfigDict(env_prefix='ENGINE_')

    SIGNAL_HISTORY_SIZE: int = 100
    REGIME_HISTORY_SIZE: int = 100
    TRADING_MODE: str = "STANDARD"  # CONSERVATIVE, STANDARD or AGGRESSIVE
    DEFAULT_SYMBOL: Optional[str] = None
    RUN_REGIME_PATH: bool = True


class Settings(BaseSettings):
    """
    Main settings object that aggregates all other settings.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    logging: LoggingSettings = LoggingSettings()
    engine: EngineSettings = EngineSettings()


settings = Settings()
