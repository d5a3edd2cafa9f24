from __future__ import annotations

import json
import os
from typing import Any

from .config import AppConfig, resolve_token_dir

ACCESS_READONLY = "readonly"
ACCESS_MODIFY = "modify"
ACCESS_LEVELS = (ACCESS_READONLY, ACCESS_MODIFY)


class TokenStore:
    """
    google-auth compatible token JSON, one file per access level.

    A modify token grants everything a readonly token does, so readonly
    commands fall back to it when no readonly token was stored.
    """

    def __init__(self, root_dir: str):
        self.root_dir = root_dir

    @staticmethod
    def open_default(cfg: AppConfig) -> "TokenStore":
        return TokenStore(resolve_token_dir(cfg))

    @staticmethod
    def _check_access(access: str) -> None:
        if access not in ACCESS_LEVELS:
            raise ValueError(f"Invalid scope: '{access}'. Valid scopes: {', '.join(ACCESS_LEVELS)}")

    def token_path(self, access: str) -> str:
        self._check_access(access)
        return os.path.join(self.root_dir, f"token-{access}.json")

    def read_token_json(self, access: str) -> dict[str, Any] | None:
        try:
            with open(self.token_path(access), "r", encoding="utf-8") as f:
                data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError(f"token-{access}.json must be a JSON object")
                return data
        except FileNotFoundError:
            return None

    def write_token_json(self, access: str, data: dict[str, Any]) -> None:
        path = self.token_path(access)
        os.makedirs(self.root_dir, exist_ok=True)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp, path)

    def find_token_json(self, access: str) -> tuple[str, dict[str, Any]] | None:
        # Returns (access level the token was stored under, token JSON).
        self._check_access(access)
        candidates = [access] if access == ACCESS_MODIFY else [ACCESS_READONLY, ACCESS_MODIFY]
        for level in candidates:
            data = self.read_token_json(level)
            if data:
                return level, data
        return None
