from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().casefold() in _TRUTHY


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Process-wide switches handed to the dispatcher at construction.

    - `debug_mode`: enables the `crash` action and the diagnostic keyboard rows.
    - `admin_id`: in debug mode this user may join their own game as guest.
    - `session_lock`: hold a per-session Redis lock for the load->save window.
      Off by default, which keeps last-write-wins semantics.
    - `allowed_transport_errors`: transport error descriptions treated as success.
    """

    debug_mode: bool = False
    admin_id: int | None = None
    session_lock: bool = False
    allowed_transport_errors: tuple[str, ...] = ("message is not modified",)
    default_locale: str = "en"
    locales_dir: Path | None = None
    lock_ttl_ms: int = field(default=5_000)

    @classmethod
    def from_env(cls) -> EngineConfig:
        admin_raw = os.environ.get("BOT_ADMIN", "").strip()
        locales_raw = os.environ.get("INLINEGAMES_LOCALES_DIR", "").strip()
        return cls(
            debug_mode=_env_flag("INLINEGAMES_DEBUG") or _env_flag("DEBUG"),
            admin_id=int(admin_raw) if admin_raw.lstrip("-").isdigit() else None,
            session_lock=_env_flag("INLINEGAMES_SESSION_LOCK"),
            default_locale=os.environ.get("INLINEGAMES_DEFAULT_LOCALE", "en"),
            locales_dir=Path(locales_raw) if locales_raw else None,
        )

    def is_admin(self, user_id: int) -> bool:
        return self.debug_mode and self.admin_id is not None and self.admin_id == user_id
