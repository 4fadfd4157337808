from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


DEFAULT_EMOTIONS = (
    "FOMO,REVENGE,TILT,OVERRISK,PATIENCE,REGRET,DISCIPLINE,CONFIDENT,ANXIOUS,NEUTRAL,"
    "PATIENT,FEARFUL,DISCIPLINED,IMPULSIVE,GREEDY,CALM"
)


class Settings(BaseSettings):
    # Supabase (accepts the frontend's NEXT_PUBLIC_* names as well)
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("supabase_url", "next_public_supabase_url"),
    )
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices("supabase_key", "next_public_supabase_anon_key"),
    )
    supabase_service_role_key: Optional[str] = None  # Required by scripts that bypass RLS

    # App
    app_name: str = "verotrade-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    # Trade listing
    default_page_limit: int = 50
    max_page_limit: int = 100
    max_fetch_rows: int = 1000  # cap for in-memory filtering and statistics

    # Emotional state tags accepted by the journal
    emotion_vocabulary: str = DEFAULT_EMOTIONS

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_emotion_vocabulary(self) -> List[str]:
        return [e.strip().upper() for e in self.emotion_vocabulary.split(",") if e.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
