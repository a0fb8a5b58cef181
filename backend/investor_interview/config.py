from typing import Optional, List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration with environment variable support"""
    
    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    DEBUG: bool = False
    RELOAD: bool = False
    LOG_LEVEL: str = "INFO"
    
    # Answer interpreter settings
    OPENAI_API_KEY: Optional[str] = None
    INTERPRETER_MODEL: str = "gpt-4o-mini"
    INTERPRETER_BASE_URL: Optional[str] = None
    INTERPRETER_TEMPERATURE: float = 0.0
    INTERPRETER_MAX_TOKENS: int = 1024
    TURN_TIMEOUT_SECONDS: float = 30.0  # Deadline for one turn, retry included
    
    # Terminal front end: single well-known session slot
    SESSION_FILE: str = ".investor_interview_session.json"
    
    # CORS settings
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:8081",
        "http://127.0.0.1:8081",
        "http://localhost:19006",
        "*"  # Allow all origins in development
    ]
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
