import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv
from fastapi import Request
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODELS = {
    "google": "gemini-2.5-flash",
    "groq": "llama-3.3-70b-versatile",
}
API_KEY_VARS = {
    "google": "GOOGLE_API_KEY",
    "groq": "GROQ_API_KEY",
}
ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
}


def load_env():
    script_dir = Path(__file__).resolve().parent.parent
    env_file = script_dir / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=str(env_file))
    else:
        load_dotenv()


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def async_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver; explicit drivers are kept."""
    scheme, sep, rest = url.partition("://")
    if not sep or "+" in scheme:
        return url
    return f"{ASYNC_DRIVERS.get(scheme, scheme)}://{rest}"


class Settings(BaseSettings):
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    db_user: Optional[str] = Field(default=None, validation_alias="DB_USER")
    db_password: Optional[str] = Field(default=None, validation_alias="DB_PASSWORD")
    db_host: Optional[str] = Field(default=None, validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: Optional[str] = Field(default=None, validation_alias="DB_NAME")

    llm_provider: str = Field(default="google", validation_alias="LLM_PROVIDER")
    google_api_key: Optional[str] = Field(default=None, validation_alias="GOOGLE_API_KEY")
    groq_api_key: Optional[str] = Field(default=None, validation_alias="GROQ_API_KEY")
    llm_model: Optional[str] = Field(default=None, validation_alias="LLM_MODEL")
    llm_temperature: float = Field(default=0.0, ge=0.0, le=2.0, validation_alias="LLM_TEMPERATURE")

    schema_path: Path = Field(default=Path("schema.prisma"), validation_alias="SCHEMA_PATH")
    sql_echo: bool = Field(default=False, validation_alias="SQL_ECHO")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=9000, validation_alias="PORT")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("llm_provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        provider = v.strip().lower()
        if provider not in API_KEY_VARS:
            raise ValueError(
                f"Unsupported LLM_PROVIDER {provider!r}; expected one of {', '.join(API_KEY_VARS)}"
            )
        return provider

    @model_validator(mode="after")
    def resolve_connection(self) -> "Settings":
        """Compose DATABASE_URL from DB_* parts if needed and require the provider's key."""
        if not self.database_url and all([self.db_user, self.db_password, self.db_host, self.db_name]):
            self.database_url = (
                f"postgresql+asyncpg://{self.db_user}:{quote_plus(self.db_password)}"
                f"@{self.db_host}:{self.db_port}/{self.db_name}"
            )

        api_key_var = API_KEY_VARS[self.llm_provider]
        missing = [k for k, v in {"DATABASE_URL": self.database_url, api_key_var: self.llm_api_key}.items() if not v]
        if missing:
            raise ValueError(f"Missing env vars: {', '.join(missing)}")

        self.database_url = async_database_url(self.database_url)
        if not self.llm_model:
            self.llm_model = DEFAULT_MODELS[self.llm_provider]
        return self

    @property
    def llm_api_key(self) -> Optional[str]:
        return self.google_api_key if self.llm_provider == "google" else self.groq_api_key


def get_settings() -> Settings:
    """Read settings from the environment and .env; raise if anything required is missing."""
    return Settings()


def get_router(request: Request):
    return request.app.state.router
