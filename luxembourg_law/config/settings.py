"""
Configuration settings for the Luxembourg Law Service
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Service
    service_name: str = "luxembourg-law-service"
    service_version: str = "1.0.0"
    log_level: str = "INFO"

    # Database
    database_url: str = Field(
        default="sqlite:///data/database.db",
        description="SQLAlchemy URL. SQLite (FTS5) by default, PostgreSQL supported via psycopg2.",
    )

    # Legilux
    legilux_base_url: str = "https://data.legilux.public.lu"
    legilux_sparql_endpoint: str = "https://data.legilux.public.lu/sparqlendpoint"
    user_agent: str = "LuxembourgLawService/1.0"
    request_min_delay_seconds: float = 0.5  # shared public endpoint
    http_timeout_seconds: float = 30.0
    drift_timeout_seconds: float = 15.0

    # Discovery
    sparql_page_size: int = 5000
    discovery_doc_types: list[str] = Field(default_factory=lambda: ["LOI", "RGD"])

    # Data directories
    data_source_dir: str = "data/source"
    data_seed_dir: str = "data/seed"
    golden_hashes_path: str = "fixtures/golden-hashes.json"

    # Freshness
    staleness_threshold_days: int = 30
    update_check_schedule: str = "0 3 * * 1"  # Mondays at 3 AM
    enable_update_checks: bool = False

    # Tools
    max_provisions_per_response: int = 50

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    @property
    def law_index_path(self) -> str:
        """Cached discovery index"""
        return f"{self.data_source_dir.rstrip('/')}/law-index.json"


# Global settings instance
settings = Settings()
