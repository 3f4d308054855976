import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()


class Settings(BaseModel):
    # openai | bedrock | mock
    ai_provider: str = os.getenv("AI_PROVIDER", "openai").strip().lower()

    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    openai_base_url: Optional[str] = os.getenv("OPENAI_BASE_URL") or None

    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    bedrock_model_id: str = os.getenv("BEDROCK_MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0")

    debug: bool = os.getenv("DEBUG_LOGGING", "false").lower() == "true"
    posthog_api_key: Optional[str] = os.getenv("POSTHOG_API_KEY") or None

    # Where the stream consumer sends chat requests
    api_url: str = os.getenv("VAULTO_API_URL", "http://localhost:8000")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
