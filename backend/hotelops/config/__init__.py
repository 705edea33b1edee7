"""
Application Configuration
"""
from decimal import Decimal
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "HotelOps"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase project (rows, RPC, storage, realtime)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str = ""
    # Server-side key used to join the change feed; row-level security hides
    # staff tables from the anon role
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # JWT issued by Supabase Auth
    SUPABASE_JWT_SECRET: str = "your-supabase-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # Pricing
    TAX_RATE: Decimal = Decimal("0.16")  # VAT applied to reservation subtotals

    # Storage
    GUEST_DOCUMENTS_BUCKET: str = "guest-documents"
    ROOM_IMAGES_BUCKET: str = "room-images"
    SIGNED_URL_EXPIRES_IN: int = 3600

    # Gateway
    HTTP_TIMEOUT_SECONDS: float = 30.0
    QUERY_CACHE_TTL_SECONDS: float = 30.0
    QUERY_CACHE_MAX_ENTRIES: int = 1024

    # Realtime change feed
    REALTIME_ENABLED: bool = True
    REALTIME_TABLES: List[str] = ["rooms", "reservations", "invoices", "payments", "refunds"]
    REALTIME_ACCESS_TOKEN: str = ""
    REALTIME_HEARTBEAT_SECONDS: float = 30.0
    REALTIME_RECONNECT_SECONDS: float = 5.0

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1", "testserver"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 100

    @property
    def realtime_access_token(self) -> str:
        """Token sent with each channel join: explicit token, then service role key, then anon key"""
        return self.REALTIME_ACCESS_TOKEN or self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_ANON_KEY

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
