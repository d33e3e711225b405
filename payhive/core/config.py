from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "PayHive API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Shared expense approval and settlement API"

    # Ledger
    # Balances and transfers below this magnitude count as settled
    EPSILON: float = 0.01

    # Payments
    DEFAULT_PAYMENT_RAIL: str = "pyusd"
    SETTLEMENT_DESCRIPTION_PREFIX: str = "PayHive settlement for"
    # Multiplier on the per-error backoff delays; 0 disables sleeping
    PAYMENT_BACKOFF_SCALE: float = 1.0

    # Fee estimates
    PAYPAL_FEE_RATE: float = 0.029
    PAYPAL_FEE_FIXED: float = 0.30
    PYUSD_GAS_LIMIT: int = 100_000
    ETH_USD_PRICE: float = 2000.0  # no price feed; rough conversion only

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
