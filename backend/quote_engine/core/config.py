"""
应用配置
从环境变量 / .env 文件加载
"""
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """全局配置"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=True)

    APP_NAME: str = "quote_engine"

    # 数据库
    DATABASE_URL: str = "sqlite+aiosqlite:///./quote_engine.db"
    DB_ECHO: bool = False

    # 成本参数缺省值（参数表缺少对应记录时使用）
    DEFAULT_LABOR_RATE: float = 15.0
    DEFAULT_ELECTRICITY_RATE: float = 0.12
    DEFAULT_OVERHEAD_RATE: float = 150.0  # 百分比
    DEFAULT_MARGIN_PERCENTAGE: float = 30.0
    DEFAULT_YIELD_RATE: float = 98.0
    ANNUAL_OPERATING_HOURS: int = 2000  # 250天 * 8小时

    # 审批分级
    APPROVAL_SECOND_LEVEL_THRESHOLD: float = 10000.0
    APPROVAL_THIRD_LEVEL_THRESHOLD: float = 50000.0
    APPROVAL_STRICT_ORDER: bool = False

    # 报价单
    DEFAULT_VALIDITY_DAYS: int = 30
    DEFAULT_CURRENCY: str = "USD"

    # Webhook
    WEBHOOK_URLS: List[str] = []
    WEBHOOK_TIMEOUT_SECONDS: float = 5.0

    # 日志
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"


settings = Settings()
