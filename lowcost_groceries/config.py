from __future__ import annotations

import os
from dataclasses import dataclass


MAX_ITEMS = 10
ZIP_LENGTH = 5
MIN_ITEM_LENGTH = 2
MAX_ALTERNATIVES = 3

REQUIRED_KEYS = [
    "GROCERY_API_URL",
]

OPTIONAL_KEYS = {
    "GROCERY_API_TIMEOUT": "30",
    "GROCERY_POLL_INTERVAL": "2.0",
}


@dataclass(frozen=True)
class Config:
    api_url: str
    timeout_s: float = 30.0

    # Seconds between result polls; the first poll is never delayed.
    poll_interval_s: float = 2.0

    max_items: int = MAX_ITEMS

    @staticmethod
    def load_from_env(environ: dict[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ

        values: dict[str, str] = {}
        for k in REQUIRED_KEYS:
            val = env.get(k)
            if val is None:
                raise RuntimeError(f"Missing environment variable: {k}")
            if val.strip() in {"PLACEHOLDER", "CHANGEME", ""}:
                raise RuntimeError(f"Environment variable {k} is still a placeholder")
            values[k] = val.strip()

        for k, default in OPTIONAL_KEYS.items():
            values[k] = env.get(k) or default

        try:
            timeout_s = float(values["GROCERY_API_TIMEOUT"])
            poll_interval_s = float(values["GROCERY_POLL_INTERVAL"])
        except ValueError as e:
            raise RuntimeError(f"Invalid numeric setting: {e}")

        return Config(
            api_url=values["GROCERY_API_URL"].rstrip("/"),
            timeout_s=timeout_s,
            poll_interval_s=poll_interval_s,
        )
