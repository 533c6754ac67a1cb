"""用户台 - 统一配置读取与校验.

目标:
- 将环境变量读取、默认值、校验集中到单一入口,避免散落在各模块中重复解析.
- `create_app(settings=...)` 只消费 Settings,不再直接读取环境变量.

说明:
- Settings 使用 `pydantic-settings` 的 `BaseSettings` 从环境变量与本地 `.env`(可选)读取配置.
- 生产环境默认更严格: 缺失关键密钥/连接串会直接抛出 ValueError.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from userdesk.constants.validation_limits import (
    BCRYPT_LOG_ROUNDS_MIN,
    DEFAULT_PAGE_SIZE,
    FILTER_DEBOUNCE_MS_MAX,
    PAGE_SIZE_MAX,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DOTENV_PATH = PROJECT_ROOT / ".env"

DEFAULT_ENVIRONMENT = "development"
APP_VERSION = "0.1.0"

DEFAULT_BCRYPT_LOG_ROUNDS = 12
DEFAULT_MAX_CONTENT_LENGTH_BYTES = 1 * 1024 * 1024

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = "userdata/logs/app.log"
DEFAULT_LOG_MAX_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 5

DEFAULT_FILTER_DEBOUNCE_MS = 50
DEFAULT_API_V1_DOCS_ENABLED = True

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_sqlite_fallback_url() -> str:
    db_path = _resolve_sqlite_fallback_path()
    return f"sqlite:///{db_path.absolute()}"


def _resolve_sqlite_fallback_path() -> Path:
    return PROJECT_ROOT / "userdata" / "userdesk_dev.db"


class Settings(BaseSettings):
    """应用运行时设置集合."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    environment: str = Field(default=DEFAULT_ENVIRONMENT, validation_alias="FLASK_ENV")
    debug: bool = Field(default=False, validation_alias="FLASK_DEBUG")

    app_name: str = Field(default="用户台", validation_alias="APP_NAME")
    app_version: str = APP_VERSION

    secret_key: str = Field(default="", validation_alias="SECRET_KEY")
    database_url: str = Field(default="", validation_alias="DATABASE_URL")

    bcrypt_log_rounds: int = Field(default=DEFAULT_BCRYPT_LOG_ROUNDS, validation_alias="BCRYPT_LOG_ROUNDS")

    max_content_length_bytes: int = Field(
        default=DEFAULT_MAX_CONTENT_LENGTH_BYTES, validation_alias="MAX_CONTENT_LENGTH"
    )

    log_level: str = Field(default=DEFAULT_LOG_LEVEL, validation_alias="LOG_LEVEL")
    log_file: str = Field(default=DEFAULT_LOG_FILE, validation_alias="LOG_FILE")
    log_max_size_bytes: int = Field(default=DEFAULT_LOG_MAX_SIZE_BYTES, validation_alias="LOG_MAX_SIZE")
    log_backup_count: int = Field(default=DEFAULT_LOG_BACKUP_COUNT, validation_alias="LOG_BACKUP_COUNT")

    users_page_size: int = Field(default=DEFAULT_PAGE_SIZE, validation_alias="USERS_PAGE_SIZE")
    filter_debounce_ms: int = Field(default=DEFAULT_FILTER_DEBOUNCE_MS, validation_alias="FILTER_DEBOUNCE_MS")

    api_v1_docs_enabled: bool = Field(default=DEFAULT_API_V1_DOCS_ENABLED, validation_alias="API_V1_DOCS_ENABLED")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        """当前是否为生产环境."""
        return self.environment.strip().lower() == "production"

    @property
    def is_testing(self) -> bool:
        return self.environment.strip().lower() in {"testing", "test"}

    @property
    def filter_debounce_seconds(self) -> float:
        """过滤输入防抖时长(秒)."""
        return self.filter_debounce_ms / 1000

    @property
    def sqlalchemy_engine_options(self) -> dict[str, object]:
        """生成 SQLAlchemy Engine 配置选项."""
        if self.database_url.startswith("sqlite"):
            return {"pool_pre_ping": True, "connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True, "echo": bool(self.debug)}

    def to_flask_config(self) -> dict[str, object]:
        """转换为 Flask app.config 可写入的配置字典."""
        return {
            "ENV": self.environment,
            "DEBUG": self.debug,
            "APP_NAME": self.app_name,
            "APP_VERSION": self.app_version,
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "SQLALCHEMY_ENGINE_OPTIONS": dict(self.sqlalchemy_engine_options),
            "BCRYPT_LOG_ROUNDS": self.bcrypt_log_rounds,
            "MAX_CONTENT_LENGTH": self.max_content_length_bytes,
            "LOG_LEVEL": self.log_level,
            "LOG_FILE": self.log_file,
            "LOG_MAX_SIZE": self.log_max_size_bytes,
            "LOG_BACKUP_COUNT": self.log_backup_count,
            "USERS_PAGE_SIZE": self.users_page_size,
            "FILTER_DEBOUNCE_MS": self.filter_debounce_ms,
            "API_V1_DOCS_ENABLED": self.api_v1_docs_enabled,
        }

    @classmethod
    def load(cls) -> Settings:
        """从环境变量加载 Settings 并执行必要校验."""
        load_dotenv(dotenv_path=DOTENV_PATH if DOTENV_PATH.exists() else None, override=False)
        return cls()

    @model_validator(mode="after")
    def _apply_defaults_and_validate(self) -> Settings:
        environment_normalized = self.environment.strip().lower()

        debug = self._resolve_debug(environment_normalized)
        self._ensure_secret_key(debug)
        self._ensure_database_url(environment_normalized)
        self._apply_api_docs_default(environment_normalized)

        self._validate()
        return self

    def _resolve_debug(self, environment_normalized: str) -> bool:
        if "debug" in self.model_fields_set:
            return bool(self.debug)
        debug = environment_normalized != "production"
        object.__setattr__(self, "debug", debug)
        return debug

    def _ensure_secret_key(self, debug: bool) -> None:
        if self.secret_key:
            return
        if not debug:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        object.__setattr__(self, "secret_key", secrets.token_urlsafe(32))
        logger.warning("⚠️  开发环境使用随机生成的SECRET_KEY,生产环境请设置环境变量")

    def _ensure_database_url(self, environment_normalized: str) -> None:
        if self.database_url:
            return
        if environment_normalized == "production":
            raise ValueError("DATABASE_URL environment variable must be set in production")

        object.__setattr__(self, "database_url", _resolve_sqlite_fallback_url())
        if environment_normalized not in {"testing", "test"}:
            logger.warning(
                "⚠️  未设置 DATABASE_URL, 非 production 环境将回退 SQLite (sqlite_db_file=%s)",
                _resolve_sqlite_fallback_path().name,
            )

    def _apply_api_docs_default(self, environment_normalized: str) -> None:
        if environment_normalized != "production":
            return
        if "api_v1_docs_enabled" in self.model_fields_set:
            return
        object.__setattr__(self, "api_v1_docs_enabled", False)

    def _validate(self) -> None:
        """执行跨字段校验,统一抛出可读的 ValueError."""
        errors: list[str] = []
        checks: list[tuple[str, bool]] = [
            (f"BCRYPT_LOG_ROUNDS 不应小于 {BCRYPT_LOG_ROUNDS_MIN}", self.bcrypt_log_rounds < BCRYPT_LOG_ROUNDS_MIN),
            ("MAX_CONTENT_LENGTH 必须为正整数(字节)", self.max_content_length_bytes <= 0),
            (f"LOG_LEVEL 仅支持 {'/'.join(sorted(_LOG_LEVELS))}", self.log_level not in _LOG_LEVELS),
            ("LOG_MAX_SIZE 必须为正整数(字节)", self.log_max_size_bytes <= 0),
            ("LOG_BACKUP_COUNT 必须为非负整数", self.log_backup_count < 0),
            (
                f"USERS_PAGE_SIZE 必须为 1-{PAGE_SIZE_MAX} 的整数",
                self.users_page_size < 1 or self.users_page_size > PAGE_SIZE_MAX,
            ),
            (
                f"FILTER_DEBOUNCE_MS 必须为 0-{FILTER_DEBOUNCE_MS_MAX} 的整数(毫秒)",
                self.filter_debounce_ms < 0 or self.filter_debounce_ms > FILTER_DEBOUNCE_MS_MAX,
            ),
        ]
        for message, condition in checks:
            if condition:
                errors.append(message)

        if errors:
            joined = "; ".join(errors)
            raise ValueError(f"配置校验失败: {joined}")
