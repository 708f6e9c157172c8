from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./cliniclink.db"
    store_timeout_seconds: float = 10.0

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:8081"

    # Scheduling business rules (local clinic time)
    business_start_hour: int = 9
    business_end_hour: int = 17  # exclusive
    business_weekdays: str = "0,1,2,3,4"  # date.weekday(): Monday=0
    min_spacing_minutes: int = 45
    cancellation_notice_hours: int = 24
    reminder_lead_hours: int = 12
    slot_step_minutes: int = 15
    # IANA zone name; empty means the host's local clock
    clinic_timezone: str = ""

    # Env
    env: str = "development"

    # Email (SMTP) delivery for reminders. Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "ClinicLink"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def business_weekdays_set(self) -> set[int]:
        return {int(d) for d in self.business_weekdays.split(",") if d.strip()}

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)


settings = Settings()
