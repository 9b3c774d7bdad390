"""设置 API."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from feeddigest.config import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_DEST_LANGUAGE,
    DEFAULT_MODEL,
    ProcessingConfig,
    build_processing_config,
    clamp_content_length,
)
from feeddigest.core.repository import ConfigStore
from feeddigest.llm.client import ConnectionTestResult, check_connection
from feeddigest.models.database import get_session

router = APIRouter(prefix="/api/settings", tags=["settings"])

# 表单为空时写入的默认值
FORM_DEFAULTS: dict[str, str] = {
    "api_endpoint": DEFAULT_API_ENDPOINT,
    "secret_key": "",
    "model": DEFAULT_MODEL,
    "dest_language": DEFAULT_DEST_LANGUAGE,
}


class SettingsResponse(BaseModel):
    """设置响应."""

    api_endpoint: str
    model: str
    dest_language: str
    max_content_length: int
    secret_key_configured: bool


class SettingsUpdateRequest(BaseModel):
    """设置更新请求."""

    api_endpoint: str | None = None
    secret_key: str | None = None
    model: str | None = None
    dest_language: str | None = None
    max_content_length: int | None = None


class SettingsUpdateResponse(BaseModel):
    """设置更新响应."""

    success: bool
    message: str


async def load_effective_config(session: AsyncSession) -> ProcessingConfig:
    """读取有效配置（配置存储优先，其次环境变量）."""
    stored = await ConfigStore(session).get_all()
    return build_processing_config(stored)


@router.get("")
async def get_current_settings(
    session: AsyncSession = Depends(get_session),
) -> SettingsResponse:
    """获取当前设置，API 密钥只返回是否已配置."""
    config = await load_effective_config(session)
    return SettingsResponse(
        api_endpoint=config.api_endpoint,
        model=config.model,
        dest_language=config.dest_language,
        max_content_length=config.max_content_length,
        secret_key_configured=bool(config.secret_key),
    )


@router.put("")
async def update_settings(
    request: SettingsUpdateRequest,
    session: AsyncSession = Depends(get_session),
) -> SettingsUpdateResponse:
    """保存设置，空值恢复默认，最大长度限制在 [500, 16000]."""
    values: dict[str, str | int] = {}
    for key, value in request.model_dump(exclude_unset=True).items():
        if key == "max_content_length":
            values[key] = clamp_content_length(value)
        elif value is None or not str(value).strip():
            values[key] = FORM_DEFAULTS[key]
        else:
            values[key] = str(value).strip()

    if values:
        await ConfigStore(session).set_many(values)
    return SettingsUpdateResponse(success=True, message="设置已更新")


@router.post("/test-llm")
async def test_llm_connection(
    request: SettingsUpdateRequest,
    session: AsyncSession = Depends(get_session),
) -> ConnectionTestResult:
    """用提交的值（不保存）测试模型连接，未提交的字段使用当前配置."""
    current = await load_effective_config(session)
    overrides = {
        key: value
        for key, value in request.model_dump(exclude_unset=True).items()
        if value is not None and str(value).strip()
    }
    config = ProcessingConfig(**{**current.model_dump(), **overrides})

    if not config.secret_key:
        return ConnectionTestResult(success=False, message="API 密钥未配置")
    return await check_connection(config)
