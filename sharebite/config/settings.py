from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "duckdb://./data/sharebite.duckdb"

    # JWT
    jwt_secret_key: str = "change-me-sharebite-development-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24 * 7  # 7 days

    # Food items
    default_expiry_hours: float = 24

    # API
    api_title: str = "ShareBite API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # Development
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
