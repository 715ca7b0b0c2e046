"""Application settings loaded from environment variables."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GREETING = (
    "¡Hola! Soy tu asistente de IA para la UTP. Puedo ayudarte con información "
    "sobre reglamentos, guías de estudiante y procedimientos académicos. "
    "¿En qué puedo ayudarte hoy?"
)

DEFAULT_ERROR_MESSAGE = (
    "Lo siento, ocurrió un error al procesar tu mensaje. Por favor, intenta de nuevo."
)


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Chat client configuration. All values come from environment variables."""

    # Remote assistant
    backend_url: str = Field(default="http://localhost:8000")
    chat_path: str = Field(default="/api/chat")
    question_field: str = Field(default="pregunta")
    request_timeout: float = Field(default=60.0)

    # Conversation
    max_question_length: int = Field(default=1000)
    greeting: str = Field(default=DEFAULT_GREETING)
    error_message: str = Field(default=DEFAULT_ERROR_MESSAGE)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def chat_url(self) -> str:
        """Join BACKEND_URL and CHAT_PATH without doubling the slash."""
        return f"{self.backend_url.rstrip('/')}/{self.chat_path.lstrip('/')}"


settings = Settings()
