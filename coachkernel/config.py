from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/coachkernel"
    default_tz: str = "UTC"
    coach_api_key: str | None = None

    # Fallback currents when a series is missing entirely
    default_sleep_score: float = 75.0
    default_readiness_score: float = 70.0

    # Trend classification: |change| must exceed this (percent) to count as up/down
    trend_threshold_sleep: float = 1.0
    trend_threshold_readiness: float = 1.0
    trend_threshold_weight: float = 0.5

    # Streak / consistency thresholds (daily score must be >= value)
    sleep_streak_threshold: float = 75.0
    readiness_consistency_threshold: float = 70.0

    # Notifications
    notification_wind_down_start: int = 21  # local hour, inclusive
    notification_wind_down_end: int = 23  # local hour, inclusive
    goal_reminder_days: int = 3  # remind when 0 < days left in month <= this

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
