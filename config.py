"""Service configuration read from environment variables."""
import os
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from errors import ConfigurationError


class Settings(BaseModel):
    database_url: str = Field("mongodb://localhost:27017", description="MongoDB connection string")
    database_name: str = Field("ecommerceCatalogDB", description="Database holding the product collection")
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)
    log_level: str = "INFO"
    seed_sample_data: bool = False
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        env = os.environ if environ is None else environ
        mapping = {
            "database_url": "DATABASE_URL",
            "database_name": "DATABASE_NAME",
            "host": "HOST",
            "port": "PORT",
            "log_level": "LOG_LEVEL",
            "seed_sample_data": "SEED_SAMPLE_DATA",
            "cors_origins": "CORS_ORIGINS",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
