"""Session configuration."""

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

DEFAULT_FORMAT = 'json'


class SessionSettings(BaseSettings):
    """Session settings loaded from environment variables (NCACHE_*)."""

    model_config = SettingsConfigDict(
        env_prefix='NCACHE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    format: str = DEFAULT_FORMAT
    log_level: str = 'INFO'
    configure_logging: bool = False
