from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    app_name: str = "Budget Pacer"
    api_prefix: str = "/api/v1"

    # Logging settings
    log_level: str = "INFO"
    log_json: bool = False

    # Allocation engine settings
    display_places: int = 2
    max_monthly_amount: Optional[Decimal] = Decimal("1000000")
    max_expense_amount: Optional[Decimal] = Decimal("100000")

    class Config:
        env_file = ".env"
        env_prefix = "BUDGET_PACER_"

@lru_cache()
def get_settings():
    return Settings()
