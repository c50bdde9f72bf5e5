"""Data Service — environment-based configuration."""

from __future__ import annotations

from shared.config import BaseServiceSettings


class DataServiceSettings(BaseServiceSettings):
    """Settings specific to the Data Service."""

    service_name: str = "data_service"
    service_port: int = 8001

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0
    redis_socket_timeout: float = 5.0
    redis_connect_retries: int = 3
    redis_connect_delay: float = 1.0

    # Record collection
    records_key: str = "users"


settings = DataServiceSettings()
