# printshop/core/config.py
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "printshop-console"

    # ---------------------------------------------------------------------
    # API contract / OpenAPI
    # ---------------------------------------------------------------------

    api_version: str = "1.0.0"
    api_description: str = (
        "Print shop console API.\n\n"
        "Protected endpoints are headers-first. Required headers: "
        "X-Role, X-Actor-User-Id. An optional Authorization bearer token is "
        "forwarded to the upstream Orders API."
    )

    env: str = "local"
    debug: bool = True
    log_level: str = "INFO"

    # ---------------------------------------------------------------------
    # Upstream Orders API
    # ---------------------------------------------------------------------

    api_base_url: str = Field(
        default="http://localhost:5000/api",
        validation_alias=AliasChoices("PRINTSHOP_API_BASE_URL", "NEXT_PUBLIC_API_BASE_URL"),
    )
    request_timeout: float = 10.0

    orders_page_size: int = 50
    orders_max_pages: int = 20

    # dashboard "due soon" window, days
    due_soon_days: int = 2


settings = Settings()
