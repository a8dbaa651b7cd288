from pathlib import Path
from typing import List, Literal, Tuple

import dotenv
from loguru import logger
from pydantic import SecretStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from models import ServerPolicy, SupportedLanguage

dotenv.load_dotenv()


PROJECT_DIR = Path(__file__).parent
LOG_DIR = PROJECT_DIR.joinpath("logs")

DEFAULT_TARGET_LANGUAGES = [
    SupportedLanguage.EN,
    SupportedLanguage.ORIGINAL,
    SupportedLanguage.TH,
    SupportedLanguage.RU,
    SupportedLanguage.UA,
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    DISCORD_TOKEN: SecretStr = Field(
        default="", description="Bot token from the Discord developer portal"
    )

    DISCORD_APP_ID: str = Field(default="", description="Discord application id")

    ENVIRONMENT: Literal["development", "production"] = Field(
        default="development",
        description="In development messages are never persisted and stats are not reported.",
    )

    DEFAULT_LANGUAGES: List[SupportedLanguage] = Field(
        default_factory=lambda: list(DEFAULT_TARGET_LANGUAGES),
        description="Target languages for direct messages, unknown guilds and guilds without their own list",
    )

    DISCORD_SERVERS: List[ServerPolicy] = Field(
        default_factory=list,
        description="Per-guild policy, JSON encoded, e.g. "
        '[{"id": "123", "target_languages": ["english", "original"]}]',
    )

    LLM_PROVIDER: Literal["openai", "deepseek"] = Field(default="openai")

    LLM_MODEL: str = Field(default="gpt-4o-mini", description="Chat completion model")

    LLM_TEMPERATURE: float = Field(default=0.2)

    OPENAI_API_KEY: SecretStr = Field(default="")

    DEEPSEEK_API_KEY: SecretStr = Field(default="")

    DEEPSEEK_BASE_URL: str = Field(default="https://api.deepseek.com")

    WHISPER_MODEL: str = Field(default="whisper-1")

    WHISPER_MAX_FILE_SIZE_MB: int = Field(
        default=25, description="Voice messages above this size are rejected before download"
    )

    ATTACHMENT_RELAY_MAX_SIZE_MB: int = Field(
        default=10, description="Messages with larger attachments are translated but not deleted"
    )

    HASURA_BASE_URL: str = Field(default="", description="Message persistence REST endpoint")

    HASURA_ADMIN_SECRET: SecretStr = Field(default="")

    BACKEND_BASE_URL: str = Field(default="", description="Q&A backend")

    GOOGLE_MEET_LINK: str = Field(default="https://meet.google.com/woh-gxma-sqm")

    TRANSLATION_HISTORY_COUNT: int = Field(
        default=5, description="Messages per channel kept as conversational context"
    )

    TRANSLATION_MAX_ATTEMPTS: int = Field(default=3)

    TRANSLATION_RETRY_DELAY: float = Field(
        default=1.0, description="Fixed delay in seconds between translation attempts"
    )

    MESSAGE_CACHE_MAX_CHANNELS: int = Field(default=100)

    CACHE_CLEANUP_INTERVAL_MINUTES: int = Field(default=30)

    CACHE_STATS_INTERVAL_MINUTES: int = Field(default=10)

    HTTP_REQUEST_TIMEOUT: float = Field(
        default=30.0, description="Timeout in seconds for the backend and persistence APIs"
    )

    BACKFILL_LIMIT: int = Field(default=1000, description="Messages fetched per channel on startup")

    BACKFILL_BATCH_SIZE: int = Field(default=100)

    @property
    def is_dev_local(self) -> bool:
        return self.ENVIRONMENT != "production"

    @property
    def llm_api_key(self) -> str:
        if self.LLM_PROVIDER == "deepseek":
            return self.DEEPSEEK_API_KEY.get_secret_value()
        return self.OPENAI_API_KEY.get_secret_value()

    @property
    def llm_base_url(self) -> str | None:
        if self.LLM_PROVIDER == "deepseek":
            return self.DEEPSEEK_BASE_URL
        return None

    def get_server_policy(self, guild_id: str | None) -> ServerPolicy | None:
        if not guild_id:
            return None
        for server in self.DISCORD_SERVERS:
            if server.id == guild_id:
                return server
        return None

    def resolve_server(
        self, guild_id: str | None
    ) -> Tuple[List[SupportedLanguage], ServerPolicy | None] | None:
        """
        Pick the target languages and policy for a message.

        Returns None when the guild is configured but disabled, in which case the
        message is ignored entirely.
        """
        policy = self.get_server_policy(guild_id)
        if policy is None:
            return list(self.DEFAULT_LANGUAGES), None

        if not policy.enabled:
            logger.debug(f"Translation disabled for guild {guild_id}")
            return None

        languages = policy.target_languages or self.DEFAULT_LANGUAGES
        return list(languages), policy


settings = Settings()  # type: ignore
