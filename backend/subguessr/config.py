from __future__ import annotations
import os
from pathlib import Path
from pydantic import BaseModel

_BUNDLED_CATEGORIES = Path(__file__).parent / "data" / "categories.txt"

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "subguessr-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "SubGuessr")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Content feed (candidate images)
    feed_base_url: str = os.getenv("FEED_BASE_URL", "https://www.reddit.com")
    feed_user_agent: str = os.getenv("FEED_USER_AGENT", "subguessr/0.1")
    feed_timeout_seconds: float = float(os.getenv("FEED_TIMEOUT_SECONDS", "10"))
    feed_page_size: int = int(os.getenv("FEED_PAGE_SIZE", "25"))
    categories_file: str = os.getenv("CATEGORIES_FILE", str(_BUNDLED_CATEGORIES))

    # Generation retry budgets
    generation_max_attempts: int = int(os.getenv("GENERATION_MAX_ATTEMPTS", "10"))
    fresh_challenge_attempts: int = int(os.getenv("FRESH_CHALLENGE_ATTEMPTS", "3"))

    # Retention windows
    challenge_ttl_days: int = int(os.getenv("CHALLENGE_TTL_DAYS", "7"))
    guess_ttl_days: int = int(os.getenv("GUESS_TTL_DAYS", "7"))
    stats_ttl_days: int = int(os.getenv("STATS_TTL_DAYS", "90"))

    leaderboard_default_size: int = int(os.getenv("LEADERBOARD_DEFAULT_SIZE", "10"))
    leaderboard_max_size: int = int(os.getenv("LEADERBOARD_MAX_SIZE", "100"))

settings = Settings()
