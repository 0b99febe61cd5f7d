from pydantic_settings import BaseSettings
from typing import Optional
from decimal import Decimal
from enum import Enum


class Environment(str, Enum):

    """运行环境枚举"""
    TESTING = "testing"
    PRODUCTION = "production"


class Settings(BaseSettings):

    # 应用基础配置
    app_name: str = "LaundryPro Backend"
    app_version: str = "1.0.0"
    environment: Environment = Environment.TESTING
    debug: bool = True

    # 数据库配置
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "laundrypro_db"
    db_user: str = "laundrypro_user"
    db_password: str = "laundrypro_password"

    # Redis配置 (优惠券列表缓存)
    redis_url: Optional[str] = None
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # 订单计价配置
    tax_rate: Decimal = Decimal("0.18")
    default_delivery_charge: Decimal = Decimal("30")
    self_service_max_saving: Decimal = Decimal("50")
    partial_self_service_max_saving: Decimal = Decimal("25")
    express_multiplier: Decimal = Decimal("1.5")
    vip_points_per_amount: int = 100  # 每消费100元积1分

    # 优惠使用记录配置
    usage_record_max_attempts: int = 3

    # 缓存配置
    coupon_cache_ttl: int = 1800

    # 日志配置
    log_level: str = "INFO"

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def database_url_computed(self) -> str:
        """计算数据库URL"""
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def redis_url_computed(self) -> str:
        """计算Redis URL"""
        if self.redis_url:
            return self.redis_url
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    class Config:
        env_file = ".env"
        case_sensitive = False


# 全局配置实例
settings = Settings()
