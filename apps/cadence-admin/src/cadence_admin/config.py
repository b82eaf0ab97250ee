"""Configuration for the cadence-admin service."""

from __future__ import annotations

from cadence_common.config import get_env, get_env_choice, get_env_float, get_env_int


class AdminConfig:
    """Admin service configuration from environment variables."""

    # Agent platform
    agent_api_url: str = get_env("AGENT_API_URL", "http://localhost:8080")
    agent_api_key: str = get_env("AGENT_API_KEY", "")
    agent_api_timeout: float = get_env_float("AGENT_API_TIMEOUT", 30.0)
    elevenlabs_api_key: str = get_env("ELEVENLABS_API_KEY", "")

    # Storage
    db_path: str = get_env("ADMIN_DB_PATH", "data/admin.db")
    settings_id: str = get_env("ADMIN_SETTINGS_ID", "global")

    # Sync
    voice_match_mode: str = get_env_choice(
        "VOICE_MATCH_MODE", ("selected-voice", "per-provider"), "selected-voice"
    )

    # Server
    port: int = get_env_int("PORT", 8010)

    # Logging
    log_level: str = get_env("LOG_LEVEL", "INFO")
    log_format: str = get_env("LOG_FORMAT", "console")


settings = AdminConfig()
