from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import fakeredis
import pytest
from fastapi.testclient import TestClient

from gameshelf.config import ShelfSettings
from gameshelf.shelf import GameShelf

TEST_ROOT = Path(__file__).resolve().parent
TEST_MANIFEST = TEST_ROOT / "assets" / "games.json"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's GAMESHELF_* / REDIS_URL exports out of the tests."""

    for name in (
        "REDIS_URL",
        "GAMESHELF_KEY_PREFIX",
        "GAMESHELF_MANIFEST_PATH",
        "GAMESHELF_GAMES_ROOT",
        "GAMESHELF_PLACEHOLDER_COVER",
        "GAMESHELF_STRICT_MANIFEST",
        "GAMESHELF_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def raw_manifest() -> list[dict[str, Any]]:
    return json.loads(TEST_MANIFEST.read_text(encoding="utf-8"))


@pytest.fixture()
def shelf(r: fakeredis.FakeRedis, raw_manifest: list[dict[str, Any]]) -> Generator[GameShelf, None, None]:
    s = GameShelf(r=r, key_prefix="test:")
    result = s.load_manifest(raw_manifest)
    assert result.loaded
    yield s
    s.close()


@pytest.fixture()
def test_settings() -> ShelfSettings:
    return ShelfSettings(key_prefix="test:", manifest_path=TEST_MANIFEST, strict_manifest=True)


@pytest.fixture()
def client_and_redis(
    r: fakeredis.FakeRedis, test_settings: ShelfSettings
) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """TestClient around a fresh app backed by fakeredis and the fixture manifest."""

    from gameshelf.main import create_app

    app = create_app(settings=test_settings, redis_client=r)
    with TestClient(app) as c:
        yield c, r
