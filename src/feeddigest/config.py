"""应用配置管理."""

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 摘要配置项的默认值（配置存储中缺失时使用）
DEFAULT_API_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-5-nano"
DEFAULT_DEST_LANGUAGE = "English"
DEFAULT_MAX_CONTENT_LENGTH = 4000

MIN_CONTENT_LENGTH = 500
MAX_CONTENT_LENGTH = 16000

# 配置存储中使用的键
PROCESSING_KEYS = (
    "api_endpoint",
    "secret_key",
    "model",
    "dest_language",
    "max_content_length",
)


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 摘要配置（配置存储为空时的回退值）
    api_endpoint: str = DEFAULT_API_ENDPOINT
    secret_key: str = ""
    model: str = DEFAULT_MODEL
    dest_language: str = DEFAULT_DEST_LANGUAGE
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH

    # 应用配置
    database_url: str = "sqlite+aiosqlite:///./feeddigest.db"
    digest_interval_minutes: int = 30
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()


def clamp_content_length(value: int | str | None) -> int:
    """把单篇文章最大长度限制在 [500, 16000]，无效值使用默认值."""
    try:
        length = int(value) if value not in (None, "") else 0
    except (TypeError, ValueError):
        length = 0
    if length <= 0:
        length = DEFAULT_MAX_CONTENT_LENGTH
    return max(MIN_CONTENT_LENGTH, min(MAX_CONTENT_LENGTH, length))


class ProcessingConfig(BaseModel):
    """单次维护运行使用的摘要配置（运行期间不可变）."""

    model_config = ConfigDict(frozen=True)

    api_endpoint: str = DEFAULT_API_ENDPOINT
    secret_key: str = ""
    model: str = DEFAULT_MODEL
    dest_language: str = DEFAULT_DEST_LANGUAGE
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH

    @field_validator("max_content_length", mode="before")
    @classmethod
    def _clamp_length(cls, value: int | str | None) -> int:
        return clamp_content_length(value)

    @property
    def base_url(self) -> str:
        """接口根地址（去掉末尾斜杠）."""
        return self.api_endpoint.rstrip("/")


def build_processing_config(stored: dict[str, str]) -> ProcessingConfig:
    """合并配置存储与环境变量，生成 ProcessingConfig（存储优先）."""
    settings = get_settings()
    values: dict[str, str | int] = {}
    for key in PROCESSING_KEYS:
        value = stored.get(key)
        if value is None or value == "":
            values[key] = getattr(settings, key)
        else:
            values[key] = value
    return ProcessingConfig(**values)
