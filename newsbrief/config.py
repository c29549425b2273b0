"""配置管理模块"""

import os
from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel, Field


class AIConfig(BaseModel):
    """生成模型配置（OpenAI 兼容接口）"""
    api_key: str = ""
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    max_tokens: int = 8192
    temperature: float = 0.3
    timeout: float = 120.0


class FetchConfig(BaseModel):
    """抓取与上下文组装配置"""
    timeout: float = 8.0  # 单个镜像的尝试超时（秒）
    max_mirrors: int = 3
    max_items_per_source: int = 15
    window_hours: int = 24
    snippet_length: int = 300
    user_agent: str = "Mozilla/5.0 (Compatible; AI-News-Bot)"


class StorageConfig(BaseModel):
    """存储配置，database_url 为空时仅使用内存缓存"""
    database_url: str = ""


class ScheduleConfig(BaseModel):
    """调度配置：每天早晚两次"""
    morning_time: str = "00:00"
    evening_time: str = "06:00"
    timezone: str = "UTC"
    morning_cutoff_hour: int = 3  # 手动触发时，UTC 小时小于该值视为早间场次


class ServerConfig(BaseModel):
    """HTTP 服务配置"""
    host: str = "0.0.0.0"
    port: int = 3000
    trigger_token: str = ""  # 为空时复用 ai.api_key


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"


class MirrorGroup(BaseModel):
    """一组提供相同内容的镜像主机"""
    name: str
    hosts: list[str] = Field(default_factory=list)


class FeedSource(BaseModel):
    """RSS 订阅源"""
    name: str
    url: str
    mirror_group: Optional[str] = None
    enabled: bool = True

    model_config = {"frozen": True}


class AppConfig(BaseModel):
    """应用配置"""
    ai: AIConfig = Field(default_factory=AIConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    feeds: list[FeedSource] = Field(default_factory=list)
    mirror_groups: list[MirrorGroup] = Field(default_factory=list)

    @property
    def trigger_token(self) -> str:
        return self.server.trigger_token or self.ai.api_key


def _expand_env_vars(value):
    """递归展开环境变量"""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            return os.environ.get(env_var, "")
        return value
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _apply_env_fallbacks(config_data: dict) -> dict:
    """配置文件未给出时，回退到常用环境变量"""
    ai = config_data.setdefault("ai", {}) or {}
    config_data["ai"] = ai
    if not ai.get("api_key"):
        ai["api_key"] = os.environ.get("API_KEY", "")

    storage = config_data.setdefault("storage", {}) or {}
    config_data["storage"] = storage
    if not storage.get("database_url"):
        storage["database_url"] = (
            os.environ.get("DATABASE_URL") or os.environ.get("POSTGRES_URL") or ""
        )
    return config_data


def load_config(config_dir: Optional[Path] = None) -> AppConfig:
    """加载配置文件"""
    if config_dir is None:
        config_dir = Path(__file__).parent.parent / "config"

    config_dir = Path(config_dir)

    # 加载主配置
    config_path = config_dir / "config.yaml"
    if not config_path.exists():
        config_path = config_dir / "config.example.yaml"

    config_data = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    config_data = _apply_env_fallbacks(_expand_env_vars(config_data))

    # 加载订阅源与镜像组
    feeds_path = config_dir / "feeds.yaml"
    if not feeds_path.exists():
        feeds_path = config_dir / "feeds.example.yaml"

    feeds_content = {}
    if feeds_path.exists():
        with open(feeds_path, "r", encoding="utf-8") as f:
            feeds_content = yaml.safe_load(f) or {}

    config_data["feeds"] = feeds_content.get("feeds", [])
    config_data["mirror_groups"] = feeds_content.get("mirror_groups", [])

    return AppConfig(**config_data)


# 全局配置实例
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """获取全局配置实例"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_dir: Optional[Path] = None) -> AppConfig:
    """重新加载配置"""
    global _config
    _config = load_config(config_dir)
    return _config
