from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "CA_", "env_file": ".env", "env_file_encoding": "utf-8"}

    api_key: str = Field(default="")
    auth_username: str = Field(default="admin")
    auth_password: str = Field(default="")
    jwt_secret: str = Field(default="change-me-change-me-change-me-change-me", min_length=32)
    jwt_expire_minutes: int = Field(default=1440)
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", pattern=r"^(console|json)$")
    db_path: str = Field(default="commerce_admin.db")
    cors_origins: str = Field(default="http://localhost:3000")

    # Cache
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_enabled: bool = Field(default=True)
    redis_connect_timeout: float = Field(default=5.0, gt=0)
    cache_default_ttl: int = Field(default=300, gt=0)

    # Imports
    import_batch_size: int = Field(default=100, ge=1)
    import_max_rows: int = Field(default=1000, ge=1)
    import_max_errors: int = Field(default=10, ge=0)
    default_country: str = Field(default="India")
    default_postal_code: str = Field(default="000000")


settings = Settings()
