from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Redis (only used when MIRROR_BACKEND=redis)
    REDIS_URL: str = "redis://localhost:6379/0"
    MIRROR_BACKEND: str = "memory"  # memory | redis

    # Pricing
    LIQUIDITY_MULTIPLIER: float = 50.0
    CPMM_MIN_POOL_QTY: float = 0.01

    # Market creation
    MINIMUM_ANTE: float = 100.0
    MAX_ANSWERS: int = 20
    STARTING_BALANCE: float = 10_000.0
    PRICE_HISTORY_LIMIT: int = 500

    # Lifecycle
    GRADUATION_VOLUME_THRESHOLD: float = 1_000.0
    GRADUATION_DWELL_SECONDS: int = 300

    # Oracle (challenge window is 2 minutes for testing; production runs 7200)
    CHALLENGE_WINDOW_SECONDS: int = 120
    CHALLENGE_BOND: float = 100.0
    CHALLENGER_REWARD_RATIO: float = 0.5

    # External price feed
    COINGECKO_API_URL: str = "https://api.coingecko.com/api/v3"
    PRICE_FEED_TIMEOUT_SECONDS: float = 10.0

    # App
    APP_NAME: str = "Prediction Market Engine"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
