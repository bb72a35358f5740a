from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./boxquote.db"
    COMPANY_NAME: str = "Quilmes Corrugados"
    COMPANY_EMAIL: str = "ventas@quilmescorrugados.com.ar"

    # Notification webhook; empty URL means "log and drop"
    NOTIFICATION_WEBHOOK_URL: str = ""
    NOTIFICATION_TIMEOUT_SECONDS: float = 5.0
    HIGH_VALUE_QUOTE_THRESHOLD: float = 500000.0

    # Lifecycle policies
    LEAD_MERGE_WINDOW_HOURS: int = 24
    ORDER_TRANSITION_POLICY: str = "free"  # 'free' | 'forward_only'

    # Document numbering
    QUOTE_NUMBER_PREFIX: str = "COT"
    ORDER_NUMBER_PREFIX: str = "ORD"

    # Public quoter limits (mm / units)
    PUBLIC_MIN_LENGTH_MM: int = 200
    PUBLIC_MAX_LENGTH_MM: int = 800
    PUBLIC_MIN_WIDTH_MM: int = 200
    PUBLIC_MAX_WIDTH_MM: int = 600
    PUBLIC_MIN_HEIGHT_MM: int = 100
    PUBLIC_MAX_HEIGHT_MM: int = 600
    PUBLIC_MIN_QUANTITY: int = 100
    BELOW_MINIMUM_FLOOR_M2: float = 1000.0
    BELOW_MINIMUM_FALLBACK_MARKUP: float = 1.20

    # Seed values for the first PricingConfig on an empty database
    SEED_PRICE_PER_M2_STANDARD: float = 700.0
    SEED_PRICE_PER_M2_VOLUME: float = 670.0
    SEED_VOLUME_THRESHOLD_M2: float = 5000.0
    SEED_MIN_M2_PER_MODEL: float = 3000.0
    SEED_FREE_SHIPPING_MIN_M2: float = 4000.0
    SEED_FREE_SHIPPING_MAX_KM: float = 60.0
    SEED_PRODUCTION_DAYS_STANDARD: int = 7
    SEED_PRODUCTION_DAYS_PRINTING: int = 14
    SEED_QUOTE_VALIDITY_DAYS: int = 7

    class Config:
        env_file = ".env"


settings = Settings()
