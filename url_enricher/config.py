"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App Settings
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True

    # Batch scheduling
    default_concurrency: int = 5
    progress_every: int = 25
    max_candidates_per_record: int = 10

    # ==========================================================================
    # Search Settings
    # ==========================================================================
    search_url: str = "https://html.duckduckgo.com/html/"
    search_result_classes: str = "result__a,result__url"  # Anchor classes holding result links
    query_pacing_seconds: float = 0.5  # Pause between successive queries of one record
    query_pacing_jitter: float = 0.0

    # ==========================================================================
    # HTTP Settings
    # ==========================================================================
    user_agent: str = "Mozilla/5.0 (compatible; UrlEnricherBot/1.0)"
    http_connect_timeout: float = 10.0
    http_read_timeout: float = 20.0  # Per-fetch deadline, a hung page never stalls a worker
    http_max_attempts: int = 1  # 1 = no retries
    http_max_connections: int = 20

    # ==========================================================================
    # Validation thresholds
    # ==========================================================================
    min_product_score: float = 0.55
    min_brand_score: float = 0.5
    title_fallback_below: float = 0.5
    host_brand_fallback_below: float = 0.5
    host_brand_score: float = 0.6

    # Metrics (empty = disabled)
    metrics_textfile: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
