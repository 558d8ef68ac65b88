from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Rule data overrides (packaged JSON files are used when unset)
    rules_path: Optional[str] = None
    alternatives_path: Optional[str] = None

    # Insight cache
    insight_cache_ttl_seconds: int = 3600  # 1 hour

    # Input caps
    max_ingredients: int = 200
    max_history_records: int = 1000  # per record kind, most recent kept

    # Pattern thresholds
    symptom_window_hours: int = 24
    food_trigger_min_occurrences: int = 3
    symptom_pattern_min_occurrences: int = 5
    timing_bucket_min_logs: int = 3

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "GUTSAFE_"


settings = Settings()
