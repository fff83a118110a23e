from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostgresSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    host: str = Field(default="localhost", alias="POSTGRES_HOST")
    port: int = Field(default=5432, alias="POSTGRES_DB_PORT")
    db_name: str = Field(default="flashdeck", alias="POSTGRES_DB_NAME")
    user: str = Field(default="flashdeck", alias="POSTGRES_DB_USER")
    password: str = Field(default="flashdeck", alias="POSTGRES_DB_PASSWORD")
    # Full URL override, e.g. sqlite+aiosqlite:///./flashdeck.db for local runs
    url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @computed_field
    def connection_string(self) -> str:
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    issuer: str = Field(default="https://auth.flashdeck.local", alias="JWT_ISSUER")
    application_id: str = Field(default="flashdeck", alias="JWT_APPLICATION_ID")
    token_lifetime_seconds: int = Field(
        default=3600, alias="JWT_TOKEN_LIFETIME_SECONDS"
    )
    key_file: str = Field(default="jwt_rsa_key.pem", alias="JWT_KEY_FILE")


class GenerationSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    # Model provider selection: "google" or "openrouter"
    provider: str = Field(default="google", alias="MODEL_PROVIDER")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    openrouter_model: str = Field(
        default="google/gemini-2.5-flash", alias="OPENROUTER_MODEL"
    )
    card_count: int = Field(default=8, alias="GENERATION_CARD_COUNT")
    timeout_seconds: float = Field(default=60.0, alias="GENERATION_TIMEOUT_SECONDS")


class SessionSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    idle_seconds: int = Field(default=3600, alias="SESSION_IDLE_SECONDS")
    sweep_interval_seconds: int = Field(default=60, alias="SESSION_SWEEP_SECONDS")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="flashdeck", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=9000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    jwt_secret: str = Field(alias="JWT_SECRET")
    # Origin the frontend is served from; share links are built against it
    public_origin: str = Field(default="http://localhost:3000", alias="PUBLIC_ORIGIN")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"], alias="CORS_ORIGINS"
    )

    @computed_field
    def is_production(self) -> bool:
        return self.mode != "dev"

    @computed_field
    def is_testing(self) -> bool:
        return self.mode == "test"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    postgres: PostgresSettings = Field(default_factory=lambda: PostgresSettings())
    jwt: JWTSettings = Field(default_factory=lambda: JWTSettings())
    generation: GenerationSettings = Field(default_factory=lambda: GenerationSettings())
    sessions: SessionSettings = Field(default_factory=lambda: SessionSettings())


settings = Settings()
