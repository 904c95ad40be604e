"""Client-side calendar configuration read from the environment."""

from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .filters import DEFAULT_POLICY, WindowPolicy
from .patients import DEFAULT_SUGGESTION_LIMIT
from .timegrid import DEFAULT_SLOT_MINUTES, MONDAY, parse_week_start

DEFAULT_STORE_URL = "http://127.0.0.1:8080"


def resolve_tz(name: Optional[str]) -> dt.tzinfo:
    """``local``/blank resolves to the machine zone, ``UTC`` to utc, else IANA."""
    raw = (name or "").strip()
    if not raw or raw.lower() in {"local", "system"}:
        return dt.datetime.now().astimezone().tzinfo or dt.timezone.utc
    if raw.upper() in {"UTC", "Z", "GMT"}:
        return dt.timezone.utc
    try:
        return ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError) as ex:
        raise ValueError(f"Invalid timezone identifier: {raw!r}") from ex


@dataclass(frozen=True)
class CalendarSettings:
    store_url: str = DEFAULT_STORE_URL
    store_timeout: float = 10.0
    timezone: str = "local"
    week_start: int = MONDAY
    slot_minutes: int = DEFAULT_SLOT_MINUTES
    filter_policy: WindowPolicy = DEFAULT_POLICY
    click_delay_ms: int = 250
    suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT

    @property
    def tzinfo(self) -> dt.tzinfo:
        return resolve_tz(self.timezone)

    @property
    def click_delay(self) -> float:
        return self.click_delay_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CalendarSettings":
        env = os.environ if environ is None else environ
        return cls(
            store_url=env.get("CLINIC_STORE_URL", DEFAULT_STORE_URL).rstrip("/"),
            store_timeout=float(env.get("CLINIC_STORE_TIMEOUT", "10")),
            timezone=env.get("CALENDAR_TIMEZONE", "local"),
            week_start=parse_week_start(env.get("CALENDAR_WEEK_START")),
            slot_minutes=int(env.get("CALENDAR_SLOT_MINUTES", str(DEFAULT_SLOT_MINUTES))),
            filter_policy=WindowPolicy(env.get("CALENDAR_FILTER_POLICY", DEFAULT_POLICY.value).lower()),
            click_delay_ms=int(env.get("CALENDAR_CLICK_DELAY_MS", "250")),
            suggestion_limit=int(env.get("CALENDAR_SUGGESTION_LIMIT", str(DEFAULT_SUGGESTION_LIMIT))),
        )
