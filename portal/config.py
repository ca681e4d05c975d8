"""
Portal configuration and settings management.
"""
import os


class Config:
    """Application configuration."""

    # Remote listings API
    API_BASE_URL: str = os.getenv("REALTY_API_URL", "https://bayut.p.rapidapi.com")
    RAPIDAPI_HOST: str = os.getenv("RAPIDAPI_HOST", "bayut.p.rapidapi.com")
    RAPIDAPI_KEY: str = os.getenv("RAPIDAPI_KEY", "")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))

    # Search behaviour
    LOCATION_DEBOUNCE_MS: int = int(os.getenv("LOCATION_DEBOUNCE_MS", "500"))
    DEFAULT_LOCATION_ID: str = os.getenv("DEFAULT_LOCATION_ID", "5002")
    FEATURED_COUNT: int = 6
    SEARCH_PAGE_SIZE: int = 24
    CURRENCY: str = "AED"

    # Live search pages kept in memory
    MAX_LIVE_PAGES: int = int(os.getenv("MAX_LIVE_PAGES", "256"))
    MAX_URL_LENGTH: int = 2000

    # Site settings
    API_TITLE: str = "Realty Portal"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Property listings with search filters backed by a remote listings API"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "")

    @property
    def debounce_seconds(self) -> float:
        return self.LOCATION_DEBOUNCE_MS / 1000.0

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if not cls.API_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(f"Invalid listings API URL: {cls.API_BASE_URL}")
        if cls.MAX_LIVE_PAGES < 1:
            raise ValueError("MAX_LIVE_PAGES must be at least 1")

# Global config instance
config = Config()
