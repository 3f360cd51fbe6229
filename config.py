"""
Application Configuration & Contract Defaults
Environment-driven settings plus the constants the game contract is built on
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List
from functools import lru_cache
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env only in development (hosted environments inject variables)
if os.getenv("RENDER") != "true":
    BASE_DIR = Path(__file__).resolve().parent
    ENV_FILE = BASE_DIR / ".env"
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE, override=True)
        print(f"✅ Loaded .env from: {ENV_FILE}")
    else:
        print(f"⚠️  .env file not found at: {ENV_FILE}")
else:
    print("✅ Running on Render - using environment variables")


class Settings(BaseSettings):
    """Application settings with explicit defaults"""

    # Environment
    DEBUG: bool = Field(default=False, validation_alias="DEBUG")
    API_URL: str = Field(default="http://localhost:8000", validation_alias="API_URL")
    LOG_FILE: str = Field(default="app.log", validation_alias="LOG_FILE")

    # MongoDB
    MONGODB_URI: str = Field(default="mongodb://localhost:27017", validation_alias="MONGODB_URI")
    DATABASE_NAME: str = Field(default="game_pass", validation_alias="DATABASE_NAME")

    # JWT (the token subject is the caller's account id)
    JWT_SECRET_KEY: str = Field(default="your-secret-key-change-this", validation_alias="JWT_SECRET_KEY")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Contract bootstrap identities (only used when the contract document is created)
    CONTRACT_OWNER_ID: str = Field(default="owner.near", validation_alias="CONTRACT_OWNER_ID")
    PAYMENT_TOKEN_ID: str = Field(default="token.cheddar.near", validation_alias="PAYMENT_TOKEN_ID")
    MINT_SERVICE_ID: str = Field(default="minter.near", validation_alias="MINT_SERVICE_ID")

    # Mint service transport
    MINT_SERVICE_URL: str = Field(default="http://localhost:8100", validation_alias="MINT_SERVICE_URL")
    MINT_CALL_TIMEOUT_SECONDS: float = Field(default=30.0, validation_alias="MINT_CALL_TIMEOUT_SECONDS")

    # "forfeit": a new start ends the running game with no reward
    # "strict": a new start is rejected while a game is running
    SESSION_START_POLICY: str = Field(default="forfeit", validation_alias="SESSION_START_POLICY")

    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.DEBUG:
            return ["*"]
        return [self.API_URL]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True
        extra = "ignore"


# Time
MIN_MS = 60 * 1000
DAY_MS = 24 * 3600 * 1000

# Credit ledger
DEFAULT_FREE_GAMES = 5
MAX_GAME_AMOUNT = 2 ** 16 - 1  # paid balances and single purchases are u16

# Token amounts are u128 with 24 decimals
TOKEN_DECIMALS = 24
MAX_TOKEN_AMOUNT = 2 ** 128 - 1


def to_token_units(whole_tokens: int) -> int:
    """Convert a whole token count into its smallest units"""
    return whole_tokens * 10 ** TOKEN_DECIMALS


# Pricing table: bundle size -> per-game price at that tier
MAX_GAME_COSTS = 4
MAX_BUNDLE_SIZE = 255
DEFAULT_GAME_COSTS = [
    (1, to_token_units(15)),
    (10, to_token_units(14)),
]

# Session manager
DEFAULT_MIN_DEPOSIT = 10 ** 21  # 0.001 of the native token
DEFAULT_MAX_GAME_DURATION_MS = 3 * MIN_MS
SESSION_START_POLICIES = ("forfeit", "strict")

# Mint call: one smallest unit is attached to every mint request
MINT_ATTACHED_DEPOSIT = 1


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()


def validate_settings():
    """Validate critical settings are configured"""
    errors = []

    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == "your-secret-key-change-this":
        errors.append("JWT_SECRET_KEY is not set or using default")
    if settings.SESSION_START_POLICY not in SESSION_START_POLICIES:
        errors.append(
            f"SESSION_START_POLICY must be one of {', '.join(SESSION_START_POLICIES)}"
        )
    if not settings.MINT_SERVICE_URL:
        errors.append("MINT_SERVICE_URL is not set")
    if settings.MINT_CALL_TIMEOUT_SECONDS <= 0:
        errors.append("MINT_CALL_TIMEOUT_SECONDS must be positive")

    if errors:
        print("\n⚠️  CONFIGURATION ERRORS:")
        for error in errors:
            print(f"   ❌ {error}")
        print("\n")
    else:
        print("✅ All critical settings configured\n")

    return len(errors) == 0


# Auto-validate on import (only in non-test environments)
if __name__ != "__main__" and os.getenv("PYTEST_CURRENT_TEST") is None:
    validate_settings()
