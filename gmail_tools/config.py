from __future__ import annotations

import json
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from platformdirs import user_config_dir, user_data_dir

from .errors import ConfigurationError

APP_NAME = "gmail-tools"


def _config_path() -> str:
    return os.path.join(user_config_dir(APP_NAME), "config.json")


def default_token_dir() -> str:
    return os.path.join(user_data_dir(APP_NAME), "tokens")


class OAuthFileConfig(BaseModel):
    # Mirrors config.json shape: { "oauth": { ... }, "token_dir": ... }
    model_config = ConfigDict(extra="ignore")

    client_id: Optional[str] = None
    client_secret: Optional[str] = None


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    oauth: Optional[OAuthFileConfig] = None
    token_dir: Optional[str] = None


def load_app_config(path: Optional[str] = None) -> AppConfig:
    try:
        with open(path or _config_path(), "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        data = {}
    # Validate but be permissive: unknown keys are ignored.
    return AppConfig.model_validate(data)


class _GoogleEnv(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    client_id: Optional[str] = Field(default=None, validation_alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(default=None, validation_alias="GOOGLE_CLIENT_SECRET")
    token_dir: Optional[str] = Field(default=None, validation_alias="GMAIL_TOOLS_TOKEN_DIR")


class OAuthConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str

    @staticmethod
    def from_env_or_config(cfg: AppConfig) -> "OAuthConfig":
        env = _GoogleEnv()
        file_oauth = cfg.oauth or OAuthFileConfig()

        client_id = env.client_id or file_oauth.client_id
        client_secret = env.client_secret or file_oauth.client_secret

        if not client_id:
            raise ConfigurationError("GOOGLE_CLIENT_ID is not set")
        if not client_secret:
            raise ConfigurationError("GOOGLE_CLIENT_SECRET is not set")
        return OAuthConfig(client_id=client_id, client_secret=client_secret)


def resolve_token_dir(cfg: AppConfig) -> str:
    env = _GoogleEnv()
    return os.path.expanduser(env.token_dir or cfg.token_dir or default_token_dir())
