from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "MindMate"
    debug: bool = False

    # Store
    database_url: str = f"sqlite:///{Path(__file__).resolve().parent.parent.parent / 'mindmate.db'}"

    # Tokens (shared with the identity provider)
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = 7

    # Assistant
    gemini_api_key: str = ""
    assistant_model: str = "gemini-2.0-flash"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list[str] = ["https://www.mindmates.app", "http://localhost:5173"]

    model_config = {
        "env_file": str(Path(__file__).resolve().parent.parent.parent / ".env"),
        "env_prefix": "MINDMATE_",
    }


settings = Settings()
