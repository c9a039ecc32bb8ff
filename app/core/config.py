import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = "GhostGuard Backend"
    SQLALCHEMY_DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./ghostguard.db")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Token signing for agents; verification is refused when empty
    LICENSE_SIGNING_SECRET: str = os.getenv("LICENSE_SIGNING_SECRET", "")
    ADMIN_SECRET: str = os.getenv("ADMIN_SECRET", "")

    # Customer session tokens
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change_this_secret")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

    STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "3"))

    # Fleet liveness
    ONLINE_TTL_MS: int = int(os.getenv("ONLINE_TTL_MS", "30000"))
    LOG_CAPACITY: int = int(os.getenv("LOG_CAPACITY", "300"))
    ACTION_CAPACITY: int = int(os.getenv("ACTION_CAPACITY", "200"))
    ACTION_EVICT_BATCH: int = int(os.getenv("ACTION_EVICT_BATCH", "50"))

settings = Settings()
