"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Billing provider
    stripe_secret_key: str = ""
    stripe_api_base: str = "https://api.stripe.com/v1"
    stripe_page_size: int = 100

    # Task tracker
    asana_access_token: str = ""
    asana_api_base: str = "https://app.asana.com/api/1.0"
    asana_project_id: str = ""
    asana_assignee_id: str | None = None

    # Mail transport
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_secure: bool = False  # Implicit TLS; STARTTLS is negotiated otherwise
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_timeout_seconds: float = 30.0
    email_from: str = ""
    email_to: str = ""
    email_reply_to: str | None = None
    email_subject_template: str = "Weekly Disputes Report for {account_name}"
    email_body_template: str = (
        'The following disputes were opened against you for the period "{start_date} – {end_date}".\n'
        "\n"
        "Please send the materials needed to contest them.\n"
        "Thank you."
    )

    # Schedule
    cron_schedule: str = "0 10 * * 1"  # Monday at 10:00
    schedule_timezone: str = "Europe/Berlin"
    report_timezone: str = "UTC"
    run_on_startup: bool = False

    # Service
    service_name: str = "dispute-reporter"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # HTTP Client
    http_timeout_seconds: float = 30.0


settings = Settings()
