"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
config.yaml 路径可以通过 CHAT_CONFIG_FILE 环境变量覆盖。
"""

import os
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource


CONFIG_FILE = os.getenv("CHAT_CONFIG_FILE", "config.yaml")


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    groq_api_key: Optional[str] = Field(default=None, description="GroqCloud API 密钥")
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="OpenAI 兼容接口的基础URL",
    )
    default_model: str = Field(
        default="openai/gpt-oss-120b",
        description="启动时使用的模型 ID",
    )
    stream_by_default: bool = Field(default=False, description="启动时是否开启流式输出")
    system_prompt: Optional[str] = Field(
        default=None,
        description="可选的系统提示词，仅在发送时插入到消息最前面",
    )

    # ---- HTTP ----
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")
    max_retries: int = Field(default=3, ge=0, le=10, description="429 限流时的最大重试次数")
    retry_delay: float = Field(default=2.0, ge=0.0, description="限流重试间隔（秒）")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # 交互式输入的 API Key 写回的文件
    env_file: str = Field(default=".env", description="保存 API Key 的 .env 文件")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file=CONFIG_FILE,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("groq_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip() or None
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
