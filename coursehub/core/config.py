# coursehub/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    database_url: str
    redis_url: str
    jwt_secret_key: str
    jwt_algorithm: str = 'HS256'

    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    db_pool_size: int = 15
    db_max_overflow: int = 25

    # Seconds a sender profile stays in Redis
    profile_cache_ttl: int = 300
    # Pending outbound frames per WebSocket before it is treated as a slow consumer
    ws_outbox_size: int = 256

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

settings = Settings()
