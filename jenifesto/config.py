from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Cache lifetimes per tier
    primary_cache_ttl_hours: float = 24
    secondary_cache_ttl_hours: float = 1
    search_cache_ttl_hours: float = 1

    # Sources
    search_result_limit: int = 5
    source_request_timeout_seconds: float = 15.0
    http_user_agent: str = "Jenifesto/0.1 (https://github.com/jenifesto/jenifesto)"
    wikidata_base_url: str = "https://www.wikidata.org"

    # Durable key-value store
    store_backend: str = "file"  # file | memory
    store_path: str = ".cache/jenifesto"

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_retention_days: int = 7

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "JENIFESTO_",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def primary_cache_ttl_seconds(self) -> float:
        return self.primary_cache_ttl_hours * 3600

    @property
    def secondary_cache_ttl_seconds(self) -> float:
        return self.secondary_cache_ttl_hours * 3600

    @property
    def search_cache_ttl_seconds(self) -> float:
        return self.search_cache_ttl_hours * 3600


settings = Settings()
