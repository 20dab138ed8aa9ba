from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardIntake"
    debug: bool = False

    psa_api_base: str = "https://api.psacard.com/publicapi/cert"
    psa_api_token: str = ""

    tcg_search_url: str = "http://localhost:3001/api/tcg/search"
    image_search_url: str = "http://localhost:3001/api/inventory/search-images"
    inventory_api_url: str = "http://localhost:3001/api"

    http_timeout_seconds: float = 15.0

    # PSA answers 429 under load; retries back off exponentially
    psa_max_retries: int = 3
    psa_initial_retry_delay_s: float = 1.0

    tcg_search_limit: int = 9

    default_trade_percentage: float = 80.0


settings = Settings()


# =============================================================================
# LOOKUP TIMING
# =============================================================================

# Quiet period after the last barcode keystroke before a cert lookup fires
PSA_DEBOUNCE_SECONDS = 1.2

# Quiet period after the last name/set/number keystroke before a product search
TCG_DEBOUNCE_SECONDS = 0.4

# Hard cap on a single image search request
IMAGE_SEARCH_TIMEOUT_SECONDS = 30.0
