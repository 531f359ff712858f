from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./todo.db"
    database_echo: bool = False
    secret_key: str = "change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    # "mock" issues unsigned demo tokens, "signed" issues verified HS256 JWTs
    token_mode: Literal["mock", "signed"] = "mock"
    enforce_token_expiry: bool = False
    # "bearer" reads the Authorization header, "stored" keeps one token in the slots table
    session_mode: Literal["bearer", "stored"] = "bearer"
    expose_verification_code: bool = True
    latency_ms: int = 500
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
