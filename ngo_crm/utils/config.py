"""Configuration management using pydantic-settings"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Backend
    db_mode: str = Field(default="supabase", description="Gateway backend: 'supabase' or 'memory'")
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_key: Optional[str] = Field(default=None, description="Supabase anon key")
    session_file: Optional[str] = Field(
        default="~/.ngo_crm/session.json",
        description="Where the CLI keeps the signed-in session between runs",
    )

    # Auth
    google_client_id: Optional[str] = Field(default=None, description="OAuth client id shown on the login page")
    app_url: str = Field(default="http://localhost:8000", description="Public origin used in e-mailed links")

    # Development bypass; only honoured when both flags are set
    is_development: bool = Field(default=False, description="Local development build")
    bypass_auth: bool = Field(default=False, description="Sign in as the development user automatically")
    dev_user_id: str = Field(default="00000000-0000-0000-0000-000000000000")
    dev_user_email: str = Field(default="dev@example.org")
    dev_user_name: str = Field(default="Development User")
    dev_user_role: str = Field(default="admin")
    dev_user_password: str = Field(default="password")

    log_level: str = Field(default="INFO", description="Logging level")

    # Contract wizard
    person_search_limit: int = Field(default=10, description="Max persons shown while searching")

    # Documents
    document_function: str = Field(default="generate-document", description="Document generation function name")
    document_generation_delay: float = Field(default=2.0, description="Seconds the generation stub sleeps")
    documents_bucket: str = Field(default="person-documents", description="Storage bucket for person files")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def bypass_enabled(self) -> bool:
        return self.is_development and self.bypass_auth


def get_settings() -> Settings:
    """Get application settings"""
    return Settings()
