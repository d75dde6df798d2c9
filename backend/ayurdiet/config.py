from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./ayurdiet.db")
    sql_echo: bool = Field(default=False)

    # Session tokens (identity itself comes from the external provider)
    jwt_secret_key: str = Field(default="dev-secret-change-me")
    token_expire_seconds: int = Field(default=86400)

    # Identity provider: ID tokens presented at signup/login are verified with this key
    identity_provider_secret: str = Field(default="dev-identity-secret-change-me")
    identity_provider_algorithm: str = Field(default="HS256")
    identity_provider_audience: str = Field(default="")
    identity_provider_issuer: str = Field(default="")

    # External diet-plan generation service
    diet_plan_service_url: str = Field(default="http://diet-generator:8000/generate-diet-plan")
    diet_plan_timeout: float = Field(default=60.0)

    # Todo persistence (one JSON blob per dietitian)
    todo_storage_dir: str = Field(default="./data/todos")
    todo_storage_key: str = Field(default="dietitian_todos")

    # Misc
    log_level: str = Field(default="INFO")
    cors_origins: str = Field(default="*")
    seed_demo_users: bool = Field(default=True)

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origin_list(self) -> list[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
