"""Record/replay transport for :class:`requests.Session`.

``SnapshotAdapter`` is mounted on a session in place of the normal HTTP
adapter:

* ``record`` mode sends requests for real and writes each exchange to a JSON
  file in ``snapshot_dir`` (the ``Authorization`` header is never written);
* ``replay`` mode answers from those files without touching the network.

Exchanges are keyed by lower-cased method plus the URL without its query
string, so one file exists per (method, endpoint).

Usage:
    session = requests.Session()
    session.mount("https://", SnapshotAdapter("tests/snapshots", snapshot_mode()))
"""
from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from requests.structures import CaseInsensitiveDict

from ..utils.logger import get_logger

log = get_logger(__name__)

RECORD = "record"
REPLAY = "replay"

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie"})

_UNSAFE_FILENAME_CHARS = re.compile(r"[/:.?=&]")


class SnapshotMissingError(requests.ConnectionError):
    """Replay mode received a request nobody recorded."""


def snapshot_mode() -> str:
    """``record`` when RECORD=true is set in the environment, else ``replay``."""
    return RECORD if os.getenv("RECORD", "").lower() == "true" else REPLAY


def request_key(method: str, url: str) -> str:
    return f"{method.lower()}_{url.split('?', 1)[0]}"


def snapshot_filename(key: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", key) + ".json"


def _decode_body(body: Union[bytes, str, None]) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return str(body)


def _safe_headers(headers: Any) -> Dict[str, str]:
    return {k: v for k, v in dict(headers).items() if k.lower() not in SENSITIVE_HEADERS}


def build_response(request, recorded: Dict[str, Any]) -> requests.Response:
    """Turn a recorded ``response`` block back into a :class:`requests.Response`."""
    resp = requests.Response()
    resp.status_code = recorded["status_code"]
    resp.headers = CaseInsensitiveDict(recorded.get("headers") or {})
    resp._content = recorded.get("body", "").encode("utf-8")
    resp.encoding = "utf-8"
    resp.url = request.url
    resp.request = request
    resp.reason = "Replayed"
    return resp


class SnapshotAdapter(BaseAdapter):
    def __init__(
        self,
        snapshot_dir: Union[str, Path],
        mode: str = REPLAY,
        real_adapter: Optional[BaseAdapter] = None,
    ):
        super().__init__()
        if mode not in (RECORD, REPLAY):
            raise ValueError(f"unknown snapshot mode: {mode!r}")
        self.snapshot_dir = Path(snapshot_dir)
        self.mode = mode
        self.real_adapter = real_adapter or HTTPAdapter()
        self.snapshots: Dict[str, Dict[str, Any]] = {}
        if mode == REPLAY:
            self.load_snapshots()

    def load_snapshots(self) -> None:
        for path in sorted(self.snapshot_dir.glob("*.json")):
            with open(path, "r", encoding="utf-8") as f:
                snapshot = json.load(f)
            key = request_key(snapshot["request"]["method"], snapshot["request"]["url"])
            self.snapshots[key] = snapshot

    def save_snapshot(self, key: str, snapshot: Dict[str, Any]) -> Path:
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.snapshot_dir / snapshot_filename(key)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2)
        self.snapshots[key] = snapshot
        return path

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        key = request_key(request.method, request.url)

        if self.mode == REPLAY:
            snapshot = self.snapshots.get(key)
            if snapshot is None:
                raise SnapshotMissingError(f"no snapshot found for request: {key}", request=request)
            return build_response(request, snapshot["response"])

        resp = self.real_adapter.send(
            request, stream=False, timeout=timeout, verify=verify, cert=cert, proxies=proxies
        )
        snapshot = {
            "request": {
                "method": request.method,
                "url": request.url,
                "headers": _safe_headers(request.headers),
                "body": _decode_body(request.body),
            },
            "response": {
                "status_code": resp.status_code,
                "headers": _safe_headers(resp.headers),
                "body": resp.text,
            },
        }
        path = self.save_snapshot(key, snapshot)
        log.debug("Recorded %s -> %s", key, path)
        return resp

    def close(self):
        self.real_adapter.close()

