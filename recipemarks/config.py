from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

from recipemarks.domain.policy import DEFAULT_USER_AGENT, ExtractionPolicy


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPEMARKS_")

    env: Env = Env.local
    log_level: str = "INFO"
    api_secret: str = ""
    cors_origins: list[str] = ["*"]
    fetch_timeout: float = 10.0
    fetch_max_bytes: int = 1024 * 1024
    fetch_max_redirects: int = 5
    user_agent: str = DEFAULT_USER_AGENT

    def policy(self) -> ExtractionPolicy:
        return ExtractionPolicy(
            time_limit=self.fetch_timeout,
            byte_limit=self.fetch_max_bytes,
            max_redirects=self.fetch_max_redirects,
            user_agent=self.user_agent,
        )
