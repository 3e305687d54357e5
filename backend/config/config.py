# config/config.py
from pydantic import Field
from pydantic_settings import BaseSettings
import pathlib
from dotenv import load_dotenv

# Explicitly load the .env file
env_path = pathlib.Path(__file__).parent / ".env"
load_dotenv(env_path)

class Settings(BaseSettings):
    app_name: str = Field("Compliance Orchestrator", env="APP_NAME")
    debug: bool = Field(False, env="DEBUG")
    log_level: str = Field("INFO", env="LOG_LEVEL")
    log_file: str = Field("logs/orchestrator.log", env="LOG_FILE")
    host: str = Field("127.0.0.1", env="HOST")
    port: int = Field(8000, env="PORT")

    # Frontend URL allowed by CORS
    frontend_url: str = Field("", env="FRONTEND_URL")

    # Caller identity (JWT issued by the main application)
    jwt_secret_key: str = Field("change-me-in-production", env="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", env="JWT_ALGORITHM")

    # LLM API keys
    openai_api_key: str = Field("", env="OPENAI_API_KEY")
    anthropic_api_key: str = Field("", env="ANTHROPIC_API_KEY")
    gemini_api_key: str = Field("", env="GEMINI_API_KEY")

    # Provider models used by the predefined agents
    openai_model: str = Field("gpt-5.1", env="OPENAI_MODEL")
    anthropic_model: str = Field("claude-sonnet-4-20250514", env="ANTHROPIC_MODEL")
    gemini_model: str = Field("gemini-1.5-pro", env="GEMINI_MODEL")

    # Gateway limits
    tool_timeout_seconds: float = Field(30.0, env="TOOL_TIMEOUT_SECONDS")
    max_batch_size: int = Field(10, env="MAX_BATCH_SIZE")
    max_prompt_chars: int = Field(10000, env="MAX_PROMPT_CHARS")
    max_attachments: int = Field(10, env="MAX_ATTACHMENTS")
    max_attachment_chars: int = Field(2_000_000, env="MAX_ATTACHMENT_CHARS")
    max_total_attachment_chars: int = Field(8_000_000, env="MAX_TOTAL_ATTACHMENT_CHARS")

    # Agent engine
    conversation_history_limit: int = Field(20, env="CONVERSATION_HISTORY_LIMIT")
    default_max_iterations: int = Field(5, env="DEFAULT_MAX_ITERATIONS")
    daily_token_budget: int = Field(0, env="DAILY_TOKEN_BUDGET")  # 0 = unlimited

    # Circuit breakers (providers and external tools)
    circuit_failure_threshold: int = Field(5, env="CIRCUIT_FAILURE_THRESHOLD")
    circuit_recovery_timeout: int = Field(60, env="CIRCUIT_RECOVERY_TIMEOUT")

    class Config:
        env_file = pathlib.Path(__file__).parent / ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

settings = Settings()
