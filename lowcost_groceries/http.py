from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests


@dataclass(frozen=True)
class HttpClient:
    base_url: str
    timeout_s: float = 30.0

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def get(self, path: str, *, params: dict | None = None) -> requests.Response:
        return requests.get(
            self.url(path),
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.timeout_s,
        )

    def post_json(self, path: str, body: dict[str, Any]) -> requests.Response:
        return requests.post(
            self.url(path),
            json=body,
            headers={"Accept": "application/json"},
            timeout=self.timeout_s,
        )
