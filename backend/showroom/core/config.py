from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "二手车展厅管理系统"
    API_V1_STR: str = "/api/v1"

    # CORS配置
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173"
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # 数据库配置
    SQLITE_DATABASE_URI: str = "sqlite:///./showroom.db"

    # 单机版无认证：请求未携带经办人时使用的员工ID
    DEFAULT_OPERATOR_ID: int = Field(default=1, description="默认经办人（员工ID）")

    # 分页
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # 低库存巡检配置
    LOW_STOCK_CHECK_ENABLED: bool = True  # 是否启用每日低库存巡检
    LOW_STOCK_CHECK_HOUR: int = 7  # 巡检时间（小时，0-23）
    LOW_STOCK_CHECK_MINUTE: int = 30  # 巡检时间（分钟，0-59）

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"加载配置: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
