# deepl_hub/config.py

from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "console"


class DeepLHubConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    auth_key: Optional[SecretStr] = Field(default=None)
    server_url: Optional[str] = Field(
        default=None, description="覆盖根据认证密钥自动选择的服务地址"
    )
    timeout_total: float = Field(default=30.0, gt=0)
    timeout_connect: float = Field(default=5.0, gt=0)
    max_connections: int = Field(default=10, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("auth_key", mode="before")
    @classmethod
    def _blank_auth_key_is_missing(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("server_url", mode="before")
    @classmethod
    def _strip_server_url(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v
