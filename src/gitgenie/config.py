"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "*"
    rate_limit_enabled: bool = True
    session_secret_key: str = "change-me-in-production"
    app_base_url: str = "http://localhost:8000"

    # Supabase Configuration (required at startup, absence is logged)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    profiles_table: str = "user_profiles"
    functions_base_url: str | None = None
    proxy_function_name: str = "fetch-github-repos"

    # JWT Verification Configuration
    use_local_jwt_verification: bool = True
    jwks_cache_ttl_seconds: int = 3600  # 1 hour
    jwt_audience: str = "authenticated"
    jwt_leeway_seconds: int = 10  # Clock skew tolerance

    # GitHub Configuration
    github_api_url: str = "https://api.github.com"
    github_user_agent: str = "Git-Genie-App"
    github_oauth_scopes: str = "repo read:user"
    github_search_page_size: int = 30
    github_user_repos_page_size: int = 100
    github_timeout_seconds: float = 10.0

    # Client session coordination
    auth_loading_timeout_seconds: float = 3.0
    max_client_sessions: int = 500

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"

    @property
    def supabase_configured(self) -> bool:
        """True when both the Supabase URL and public key are present."""
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def functions_url(self) -> str:
        """Base URL the client uses to invoke edge functions."""
        if self.functions_base_url:
            return self.functions_base_url.rstrip("/")
        return f"{self.supabase_url.rstrip('/')}/functions/v1"


settings = Settings()
