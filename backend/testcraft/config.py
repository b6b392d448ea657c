"""
Application settings.

Values come from environment variables, optionally loaded from a `.env`
file in the working directory. A single module-level `settings` object is
shared by the database, logging and security modules.
"""

import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """
    Plain settings holder populated from the environment.

    Attributes:
        database_url: SQLAlchemy URL (SQLite file by default)
        log_level: Root log level name
        jwt_secret_key / jwt_algorithm: Bearer token signing parameters
        access_token_expire_minutes: Lifetime of minted tokens
        cors_origins: Allowed origins for the editor frontend
    """

    def __init__(self) -> None:
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./testcraft.db")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # JWT_SECRET is accepted as an older alias
        self.jwt_secret_key = (
            os.getenv("JWT_SECRET_KEY") or os.getenv("JWT_SECRET") or "change_me_in_prod"
        )
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.access_token_expire_minutes = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "43200")
        )

        origins = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]


settings = Settings()
