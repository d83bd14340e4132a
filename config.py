from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load variables from a local .env into the process environment (no error if missing).
load_dotenv()


class Config(BaseSettings):
    """Pydantic-based settings loaded from process environment."""

    notion_token: str = Field(default="", validation_alias="NOTION_TOKEN")
    notion_database_id: str = Field(default="", validation_alias="NOTION_DATABASE_ID")
    notion_api_base_url: str = Field(
        default="https://api.notion.com", validation_alias="NOTION_API_BASE_URL"
    )
    notion_version: str = Field(default="2022-06-28", validation_alias="NOTION_VERSION")
    bible_loader_log_level: str = Field(default="info", validation_alias="BIBLE_LOADER_LOG_LEVEL")
    bible_data_dir: str = Field(default="data", validation_alias="BIBLE_DATA_DIR")
    scrape_request_delay_sec: float = Field(
        default=1.0, validation_alias="SCRAPE_REQUEST_DELAY_SEC"
    )


# Single shared instance to import elsewhere
config = Config()
