from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from gameshelf.manifest.registry import DEFAULT_GAMES_ROOT, DEFAULT_PLACEHOLDER_COVER, ManifestDefaults

# project root is one level up from this file: gameshelf/config.py
PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True, slots=True)
class ShelfSettings:
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "gameshelf:"
    manifest_path: Path = PROJECT_ROOT / "assets" / "games.json"
    games_root: str = DEFAULT_GAMES_ROOT
    placeholder_cover: str = DEFAULT_PLACEHOLDER_COVER
    strict_manifest: bool = False
    log_level: str = "INFO"

    @property
    def manifest_defaults(self) -> ManifestDefaults:
        return ManifestDefaults(games_root=self.games_root, placeholder_cover=self.placeholder_cover)


def settings_from_env(*, dotenv_path: Path | None = None) -> ShelfSettings:
    """Build settings from the environment.

    A `.env` file (repo root by default) is read first but never overrides variables that
    are already set.
    """

    env_path = dotenv_path or PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)

    defaults = ShelfSettings()
    manifest_path = os.environ.get("GAMESHELF_MANIFEST_PATH")
    return ShelfSettings(
        redis_url=os.environ.get("REDIS_URL", defaults.redis_url),
        key_prefix=os.environ.get("GAMESHELF_KEY_PREFIX", defaults.key_prefix),
        manifest_path=Path(manifest_path) if manifest_path else defaults.manifest_path,
        games_root=os.environ.get("GAMESHELF_GAMES_ROOT", defaults.games_root),
        placeholder_cover=os.environ.get("GAMESHELF_PLACEHOLDER_COVER", defaults.placeholder_cover),
        strict_manifest=_truthy(os.environ.get("GAMESHELF_STRICT_MANIFEST")),
        log_level=os.environ.get("GAMESHELF_LOG_LEVEL", defaults.log_level).upper(),
    )
