from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "FLEETLEDGER_"}

    # Database
    database_url: str = "sqlite+aiosqlite:///./fleetledger.db"

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Loan defaults (percent per annum, as entered on the vehicle form)
    default_interest_rate: float = 8.5
    max_tenure_months: int = 360

    # Vehicle value loses this fraction every year
    default_depreciation_rate: float = 0.10

    # Break-even / loan clearance searches stop after this many months
    projection_search_months: int = 120

    # An EMI can be marked paid from this many days before its due date
    early_payment_window_days: int = 3

    # Historical installments seeded as paid get paid_at = due_date - N days
    seeded_paid_offset_days: int = 3


settings = Settings()
