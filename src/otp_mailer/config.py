"""OTP Mailer — configuration loaded from environment."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── App ───────────────────────────────────────────────
    app_name: str = "Project Delta"
    debug: bool = False
    log_level: str = "INFO"

    # ── OTP lifecycle ─────────────────────────────────────
    otp_ttl_seconds: int = 300
    otp_rate_limit_seconds: int = 60
    otp_max_generation_attempts: int = 10
    otp_sweep_interval_seconds: float = 300
    otp_sweep_initial_delay_seconds: float = 15
    otp_sweeper_enabled: bool = True

    # Upper bound for any single store / email provider call
    external_call_timeout_seconds: float = 15

    # ── OTP store ─────────────────────────────────────────
    otp_store_backend: Literal["memory", "sql", "firebase"] = "memory"
    database_url: str = "sqlite+aiosqlite:///./otp_mailer.db"
    firebase_database_url: str = ""
    firebase_auth_token: str = ""
    firebase_otp_path: str = "otp"

    # ── Email delivery ────────────────────────────────────
    email_backend: Literal["console", "brevo", "smtp"] = "console"
    brevo_api_key: str = ""
    brevo_sender_email: str = "no-reply@project-delta.local"
    brevo_sender_name: str = "Project Delta"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = "no-reply@project-delta.local"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def otp_ttl_ms(self) -> int:
        return self.otp_ttl_seconds * 1000

    @property
    def otp_rate_limit_ms(self) -> int:
        return self.otp_rate_limit_seconds * 1000


# Singleton settings instance
settings = Settings()
