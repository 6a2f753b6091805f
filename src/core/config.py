from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from core.constants import ASSETS


class Settings(BaseSettings):

    ENVIRONMENT_NAME: str = "Development"

    @property
    def is_production(self):
        return self.ENVIRONMENT_NAME == "Production"

    PROJECT_NAME: str = "breeze-yield-bot"

    TELEGRAM_TOKEN: Optional[str] = None
    TRANSACTION_ALERTS_GROUP_CHATID: Optional[str] = None
    SYSTEM_ERROR_ALERTS_GROUP_CHATID: Optional[str] = None

    SOLANA_RPC_URL: str = "https://api.mainnet-beta.solana.com"
    # "confirmed" or "finalized"
    SOLANA_COMMITMENT: str = "confirmed"

    BREEZE_API_URL: str = "https://api.breeze.baby"
    BREEZE_API_KEY: Optional[str] = None
    BREEZE_FUND_ID: Optional[str] = None
    BREEZE_REQUEST_TIMEOUT_SECONDS: float = 30

    FINALITY_TIMEOUT_SECONDS: float = 90
    FINALITY_POLL_INTERVAL_SECONDS: float = 1.0

    FUND_ASSET: str = "USDC"

    # Seq log
    SEQ_SERVER_URL: Optional[str] = None
    SEQ_SERVER_API_KEY: Optional[str] = None
    LOG_DIR: str = "logs"

    @field_validator("SOLANA_COMMITMENT", mode="before")
    def check_commitment(cls, v: str) -> str:
        v = str(v).lower()
        if v not in ("confirmed", "finalized"):
            raise ValueError(f"Unsupported commitment level: {v}")
        return v

    @field_validator("FUND_ASSET", mode="before")
    def check_fund_asset(cls, v: str) -> str:
        v = str(v).upper()
        if v not in ASSETS:
            raise ValueError(f"Unknown asset: {v}")
        return v

    @field_validator("BREEZE_API_URL", mode="before")
    def strip_trailing_slash(cls, v: str) -> str:
        return str(v).rstrip("/")

    class Config:

        case_sensitive = True
        env_file = ".env"
        extra = "allow"


settings = Settings()
