import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Briefsmith"
    VERSION: str = "0.1.0"

    # Reasoning service (Gemini). An empty key disables it and the
    # rule-based decomposer becomes the primary path.
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")
    # Probed in order; the first model that answers is kept for the session
    MODEL_CANDIDATES: List[str] = ["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"]
    MODEL_TEMPERATURE: float = 0.2
    PROBE_PROMPT: str = "Reply with the single word: ready"

    # Synthesis targets
    SQL_DIALECT: str = "postgresql"
    BACKEND_ROOT: str = "app"
    FRONTEND_ROOT: str = "frontend"

    # Execution graph
    GRAPH_RECURSION_LIMIT: int = 100

    # Base directory of the checkout
    BASE_DIR: str = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

    # Logging paths
    LOG_DIR: str = os.path.join(BASE_DIR, "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()

# Ensure directories exist
os.makedirs(settings.LOG_DIR, exist_ok=True)
