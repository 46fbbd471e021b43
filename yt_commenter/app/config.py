"""
Configuration Management for YouTube Commenter
Standalone configuration system with environment variable overrides
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Any, Optional, List

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# ============================================================================
# Core Configuration Classes
# ============================================================================


class APIConfig(BaseSettings):
    """API Server Configuration"""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Debug mode")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="CORS allowed origins (comma-separated)",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]


class DatabaseConfig(BaseSettings):
    """Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = Field(
        default="sqlite+aiosqlite:///./yt_commenter.db", description="Database URL"
    )
    echo: bool = Field(default=False, description="Echo SQL queries")


class LoggingConfig(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file_path: Optional[str] = Field(
        default="./logs/yt_commenter.log", description="Log file path"
    )


class YouTubeAPISettings(BaseSettings):
    """YouTube Data API settings"""

    model_config = SettingsConfigDict(env_prefix="YOUTUBE_")

    base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        description="YouTube Data API v3 base URL",
    )
    max_results_per_page: int = Field(
        default=100, description="Max results per list call (1-100)"
    )

    # Quota Management
    daily_quota_limit: int = Field(
        default=10000, description="YouTube API daily quota limit"
    )

    # Rate Limiting
    requests_per_second: float = Field(
        default=10.0, description="Maximum API requests per second"
    )
    burst_capacity: int = Field(
        default=20, description="Maximum burst request capacity"
    )

    # Request Settings
    max_retries: int = Field(
        default=3, description="Maximum attempts for rate-limited reads"
    )
    read_timeout: float = Field(
        default=10.0, description="Timeout for read calls in seconds"
    )
    write_timeout: float = Field(
        default=30.0, description="Timeout for comment posting in seconds"
    )
    backoff_base: float = Field(
        default=1.0, description="Base delay for exponential backoff (seconds)"
    )
    backoff_max: float = Field(
        default=30.0,
        description="Cap on exponential backoff and on Retry-After hints waited in-process",
    )

    @field_validator("max_results_per_page")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """YouTube caps list calls at 100 items"""
        if not 1 <= v <= 100:
            raise ValueError("max_results_per_page must be between 1 and 100")
        return v

    @field_validator("daily_quota_limit")
    @classmethod
    def validate_quota(cls, v: int) -> int:
        """Validate quota limit"""
        if v < 100:
            raise ValueError("Daily quota limit must be at least 100")
        return v


class OAuthSettings(BaseSettings):
    """Google OAuth2 settings used by the session gate"""

    model_config = SettingsConfigDict(env_prefix="OAUTH_")

    client_id: str = Field(default="", description="OAuth client ID")
    client_secret: str = Field(default="", description="OAuth client secret")
    redirect_uri: str = Field(
        default="http://localhost:8000/api/auth/callback",
        description="Redirect URI registered for the OAuth client",
    )
    authorize_url: str = Field(
        default="https://accounts.google.com/o/oauth2/auth",
        description="Authorization endpoint",
    )
    token_url: str = Field(
        default="https://oauth2.googleapis.com/token", description="Token endpoint"
    )
    userinfo_url: str = Field(
        default="https://www.googleapis.com/oauth2/v1/userinfo",
        description="User info endpoint",
    )
    scopes: str = Field(
        default=(
            "https://www.googleapis.com/auth/youtube.readonly "
            "https://www.googleapis.com/auth/youtube.force-ssl "
            "https://www.googleapis.com/auth/userinfo.email "
            "https://www.googleapis.com/auth/userinfo.profile"
        ),
        description="Space-separated OAuth scopes",
    )
    request_timeout: float = Field(default=10.0, description="Token call timeout")

    # Session lifecycle
    session_ttl_days: int = Field(default=7, description="Session lifetime in days")
    refresh_margin_seconds: int = Field(
        default=300, description="Refresh access tokens expiring within this window"
    )
    pending_ttl_seconds: int = Field(
        default=600, description="How long an unfinished login stays valid"
    )

    @property
    def scopes_list(self) -> List[str]:
        return [scope for scope in self.scopes.split() if scope]


class AISettings(BaseSettings):
    """Text generation collaborator settings"""

    model_config = SettingsConfigDict(env_prefix="AI_")

    api_key: str = Field(default="", description="OpenAI-compatible API key")
    base_url: str = Field(
        default="https://api.openai.com/v1", description="Chat completions base URL"
    )
    model: str = Field(default="gpt-4o-mini", description="Default generation model")
    allowed_models: str = Field(
        default="gpt-4o-mini,gpt-4o,gpt-4,gpt-3.5-turbo",
        description="Models a request may choose (comma-separated)",
    )
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_tokens: int = Field(default=300, description="Max tokens per reply")
    timeout_seconds: float = Field(
        default=30.0, description="Generation timeout in seconds"
    )

    @property
    def allowed_models_list(self) -> List[str]:
        """Allowed models, always including the default"""
        models = [m.strip() for m in self.allowed_models.split(",") if m.strip()]
        if self.model not in models:
            models.insert(0, self.model)
        return models


class SecuritySettings(BaseSettings):
    """Security Configuration"""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    credential_key: str = Field(
        default="", description="Fernet key used to encrypt stored OAuth tokens"
    )


class SyncSettings(BaseSettings):
    """Comment synchronization settings"""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    deadline_seconds: float = Field(
        default=60.0, description="Overall deadline for one video sync"
    )
    max_comment_pages: int = Field(
        default=50, description="Safety cap on comment pages per sync"
    )
    max_reply_pages: int = Field(
        default=20, description="Safety cap on reply pages per comment"
    )


class CeleryConfig(BaseSettings):
    """Celery Task Queue Configuration"""

    model_config = SettingsConfigDict(env_prefix="CELERY_")

    broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery message broker URL (Redis or RabbitMQ)",
    )
    result_backend: str = Field(
        default="redis://localhost:6379/0",
        description="Task result storage backend URL",
    )
    task_serializer: str = Field(
        default="json", description="Task serialization format"
    )
    result_serializer: str = Field(
        default="json", description="Result serialization format"
    )
    accept_content: List[str] = Field(
        default=["json"], description="Accepted content types"
    )
    task_time_limit: int = Field(
        default=600, description="Hard task timeout in seconds"
    )
    task_soft_time_limit: int = Field(
        default=300, description="Soft task timeout in seconds"
    )
    task_acks_late: bool = Field(
        default=True, description="Acknowledge tasks after completion"
    )
    result_expires: int = Field(
        default=86400, description="Task result expiration time (24 hours)"
    )
    task_default_queue: str = Field(
        default="sync", description="Default task queue name"
    )
    worker_hijack_root_logger: bool = Field(
        default=False, description="Don't hijack root logger"
    )


# ============================================================================
# Main Configuration Class
# ============================================================================


class Config:
    """
    Main Application Configuration
    Aggregates all configuration modules with unified access
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize application configuration

        Args:
            config_path: Optional YAML config file path
        """
        self.config_path = config_path or "configs/app.yaml"
        self.yaml_config = self._load_yaml_config()

        self.api = APIConfig()
        self.database = DatabaseConfig()
        self.logging = LoggingConfig()
        self.security = SecuritySettings()
        self.celery = CeleryConfig()

        self.youtube_api = YouTubeAPISettings()
        self.oauth = OAuthSettings()
        self.ai = AISettings()
        self.sync = SyncSettings()

    def _load_yaml_config(self) -> Dict[str, Any]:
        """Load YAML configuration file"""
        config_file = Path(self.config_path)

        if not config_file.exists():
            logger.debug(f"Config file not found: {config_file}, using defaults")
            return {}

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config: {e}")
            return {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot notation key"""
        keys = key.split(".")
        value = self.yaml_config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary (never includes secrets)"""
        return {
            "app": self.yaml_config.get("app", {}),
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "debug": self.api.debug,
            },
            "database": {
                "url": self.database.url.split("/")[-1],
            },
            "youtube_api": {
                "quota_limit": self.youtube_api.daily_quota_limit,
                "requests_per_second": self.youtube_api.requests_per_second,
                "max_retries": self.youtube_api.max_retries,
            },
            "oauth": {
                "client_id_set": bool(self.oauth.client_id),
                "redirect_uri": self.oauth.redirect_uri,
                "session_ttl_days": self.oauth.session_ttl_days,
            },
            "ai": {
                "api_key_set": bool(self.ai.api_key),
                "model": self.ai.model,
            },
            "security": {
                "credential_key_set": bool(self.security.credential_key),
            },
        }


# ============================================================================
# Global Configuration Instance (Singleton)
# ============================================================================

_config: Optional[Config] = None
_config_lock = threading.Lock()


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get or create global configuration instance (Thread-safe singleton)

    Args:
        config_path: Optional path to config file

    Returns:
        Config instance
    """
    global _config

    if _config is None:
        with _config_lock:
            if _config is None:
                _config = Config(config_path)
                logger.info("✅ Configuration initialized")

    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)"""
    global _config

    with _config_lock:
        _config = None


# ============================================================================
# Configuration Validation
# ============================================================================


def validate_config(config: Optional[Config] = None) -> Dict[str, Any]:
    """
    Validate configuration

    Args:
        config: Config instance (uses global if None)

    Returns:
        Validation result with errors and warnings
    """
    if config is None:
        config = get_config()

    errors = []
    warnings = []

    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        if not log_path.parent.exists():
            try:
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create log directory: {e}")

    if not config.database.url:
        errors.append("Database URL not configured")
    elif "+aiosqlite" not in config.database.url and "+asyncpg" not in config.database.url:
        warnings.append(
            f"Database URL does not name an async driver: {config.database.url.split(':')[0]}"
        )

    if not config.oauth.client_id or not config.oauth.client_secret:
        warnings.append("OAuth client not configured - logins will fail")

    if not config.ai.api_key:
        warnings.append("AI API key not set - reply generation will fail")

    if not config.security.credential_key:
        warnings.append(
            "SECURITY_CREDENTIAL_KEY not set - an ephemeral key will be used and "
            "stored credentials will not survive a restart"
        )

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


# ============================================================================
# Convenience Functions
# ============================================================================


def setup_logging(config: Optional[Config] = None) -> None:
    """
    Setup logging based on configuration

    Args:
        config: Config instance (uses global if None)
    """
    import logging.handlers

    if config is None:
        config = get_config()

    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(config.logging.format))
    root_logger.addHandler(console_handler)

    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(config.logging.format))
        root_logger.addHandler(file_handler)

    logger.info(f"📝 Logging configured: level={config.logging.level}")
