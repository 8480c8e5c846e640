"""Application configuration."""

import os
from urllib.parse import quote

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_HOSTED_UI_SCOPE = "email+openid+phone"


class Settings(BaseSettings):
    """Deployment settings loaded from the environment, then .env files."""

    cognito_user_pool_id: str = "us-east-1_io9CtBusD"
    cognito_client_id: str = "8au96ta14667pdcgfagc6a3n4"
    cognito_region: str = "us-east-1"
    cognito_identity_pool_id: str = "us-east-1:ae0ab6d6-df6b-4326-90e6-3d6676d63575"
    cognito_domain: str = "us-east-1io9ctbusd"
    redirect_uri: str = "https://d84l1y8p4kdic.cloudfront.net"
    api_photos_endpoint: str = (
        "https://hj9ps33iv0.execute-api.us-east-1.amazonaws.com/prod/photos/"
    )
    api_upload_endpoint: str = (
        "https://0akv8smyga.execute-api.us-east-1.amazonaws.com"
        "/prod/photo-sharing-test-bkt/"
    )
    state_file: str = "~/.photo_gallery/state.json"
    token_exchange: str = "demo"
    expiry_check_seconds: float = 60.0
    processing_poll_seconds: float = 10.0
    processing_expected_seconds: float = 60.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def hosted_ui_base_url(self) -> str:
        """Base URL of the Cognito hosted UI for this pool."""
        return (
            f"https://{self.cognito_domain}.auth.{self.cognito_region}"
            ".amazoncognito.com"
        )

    @property
    def login_url(self) -> str:
        """Hosted UI login page with the authorization code grant parameters."""
        return self._hosted_ui_url("login")

    @property
    def signup_url(self) -> str:
        """Hosted UI registration page with the same parameters as login."""
        return self._hosted_ui_url("signup")

    @property
    def token_url(self) -> str:
        """OAuth2 token endpoint of the hosted UI."""
        return f"{self.hosted_ui_base_url}/oauth2/token"

    @property
    def identity_provider_key(self) -> str:
        """Logins map key used by the identity pool for this user pool."""
        return (
            f"cognito-idp.{self.cognito_region}.amazonaws.com/"
            f"{self.cognito_user_pool_id}"
        )

    def _hosted_ui_url(self, page: str) -> str:
        # Scope keeps its literal "+" separators; only the redirect is encoded.
        redirect = quote(self.redirect_uri, safe="")
        return (
            f"{self.hosted_ui_base_url}/{page}"
            f"?client_id={self.cognito_client_id}"
            f"&response_type=code&scope={_HOSTED_UI_SCOPE}"
            f"&redirect_uri={redirect}"
        )
