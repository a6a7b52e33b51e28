# config.py

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    gemini_api_key: str = ""
    reader_log_level: str = "info"

    # Allow the browser front-end (and local tools) to call the API.
    cors_origins: List[str] = ["*"]

    # Models
    analysis_model: str = "gemini-3-pro-preview"
    image_model: str = "gemini-3-pro-image-preview"

    # Thinking budget lets the model look at visual details before emitting JSON
    image_thinking_budget: int = 4000
    text_thinking_budget: int = 2000

    image_aspect_ratio: str = "16:9"
    image_size: str = "1K"

    # Oldest idle sessions are evicted past this many
    max_sessions: int = 200

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
