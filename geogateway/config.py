from pydantic_settings import BaseSettings

from geogateway import __version__


class Settings(BaseSettings):
    python_service_url: str = "http://localhost:8000"
    python_process_points_endpoint: str = "/geo/process-points"
    python_health_endpoint: str = "/health"
    process_timeout: float = 10.0
    health_timeout: float = 5.0
    max_redirects: int = 5
    cache_maxsize: int = 100
    cache_ttl: int = 300
    frontend_url: str = "http://localhost:3001"
    host: str = "0.0.0.0"
    port: int = 3000
    app_version: str = __version__
    log_format: str = "text"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
