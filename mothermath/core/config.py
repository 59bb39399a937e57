import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from mothermath.core.errors import MissingCredentialsError

# Load environment variables from .env
load_dotenv()

# Security settings (tokens are issued by the external identity provider)
SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")  # Replace with the provider's signing key in production
ALGORITHM = os.getenv("ALGORITHM", "HS256")

# Storage
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mothermath.db")

# App paths
CURRICULUM_PATH = os.getenv("CURRICULUM_PATH", os.path.join(os.path.dirname(os.path.dirname(__file__)), "data"))
LOGO_PATHS: List[str] = [p.strip() for p in os.getenv(
    "LOGO_PATHS",
    "assets/logos/ebase_africa.png,assets/logos/eef.png,assets/logos/better_purpose.png,assets/logos/gates_foundation.png",
).split(",") if p.strip()]

CORS_ORIGINS: List[str] = [o.strip() for o in os.getenv(
    "CORS_ORIGINS",
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:3000,http://127.0.0.1:5173",
).split(",") if o.strip()]


# -------------------------
# Gateway Configuration
# -------------------------
class GatewaySettings(BaseSettings):
    """LLM gateway configuration with environment variable support"""

    base_url: str = "https://openrouter.ai/api/v1"
    api_key: str = ""
    api_key_prefix: str = "sk-or-v1-"
    model: str = "google/gemini-flash-1.5"
    chat_model: str = "google/gemini-2.5-flash"
    feedback_model: str = "openai/gpt-4o"
    questions_model: str = "openai/gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 2048
    timeout: float = 120.0
    referer: str = "http://localhost:5173"
    app_title: str = "Mother of Math"

    class Config:
        env_prefix = "GATEWAY_"
        case_sensitive = False

    def require_api_key(self) -> str:
        if not self.api_key:
            raise MissingCredentialsError("API key not configured. Please set GATEWAY_API_KEY.")
        if self.api_key_prefix and not self.api_key.startswith(self.api_key_prefix):
            raise MissingCredentialsError(
                f"API key format is invalid - should start with {self.api_key_prefix}"
            )
        return self.api_key


class VoiceSettings(BaseSettings):
    """Voice SDK configuration used to start mock interview sessions"""

    api_key: str = ""
    assistant_id: str = ""

    class Config:
        env_prefix = "VOICE_"
        case_sensitive = False

    def require_credentials(self) -> str:
        if not self.api_key:
            raise MissingCredentialsError("Voice API key not configured. Please set VOICE_API_KEY.")
        if not self.assistant_id:
            raise MissingCredentialsError("Voice assistant not configured. Please set VOICE_ASSISTANT_ID.")
        return self.api_key


@lru_cache()
def get_gateway_settings() -> GatewaySettings:
    return GatewaySettings()


@lru_cache()
def get_voice_settings() -> VoiceSettings:
    return VoiceSettings()
