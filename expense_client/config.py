from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EXPENSE_CLIENT_", env_file=".env", extra="ignore")

    API_BASE: str = Field(default="http://localhost:8000/api")
    REFERENCE_CURRENCY: str = Field(default="INR")
    # {base} is replaced by the reference currency code
    RATES_URL: str = Field(default="https://open.er-api.com/v6/latest/{base}")
    TIMEOUT_SECONDS: float = Field(default=10.0)


client_settings = ClientSettings()
