from __future__ import annotations

import pytest

from gmail_tools.tokens import TokenStore


@pytest.fixture()
def token_store(tmp_path) -> TokenStore:
    return TokenStore(str(tmp_path / "tokens"))
