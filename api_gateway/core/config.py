"""API Gateway — environment-based configuration."""

from __future__ import annotations

from shared.config import BaseServiceSettings


class ApiGatewaySettings(BaseServiceSettings):
    """Settings specific to the API Gateway."""

    service_name: str = "api_gateway"
    service_port: int = 8000

    # Downstream service
    data_service_url: str = "http://localhost:8001"

    # Forwarding policy
    forward_timeout_seconds: float = 10.0
    forward_max_retries: int = 0
    forward_backoff_seconds: float = 0.5


settings = ApiGatewaySettings()
