"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./payout_accounts.db"
    log_level: str = "INFO"

    # "mock" keeps everything in-process; "razorpay" talks to the real Route API
    provider: str = "mock"
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_base_url: str = "https://api.razorpay.com/v2"
    razorpay_webhook_secret: str = ""
    provider_timeout_seconds: float = 30.0
    provider_read_retries: int = 2

    outbox_max_attempts: int = 5
    outbox_base_delay_seconds: float = 3.0
    outbox_max_delay_seconds: float = 300.0
    stakeholder_job_delay_seconds: float = 1.0
    worker_poll_interval_seconds: float = 2.0
    worker_batch_size: int = 20
    # a job still processing past its lease is assumed abandoned and reclaimed
    worker_lease_seconds: float = 300.0

    frontend_url: str = "https://playasport.in"
    company_name: str = "Play A Sport"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
