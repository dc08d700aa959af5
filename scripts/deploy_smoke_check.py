"""Post-deploy smoke checks executed from the app container."""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request

BASE_URL = os.environ.get("SMOKE_BASE_URL", "http://localhost:8000")


def request(
    path: str,
    *,
    method: str = "GET",
    body: dict[str, object] | None = None,
    headers: dict[str, str] | None = None,
    expected: int = 200,
) -> bytes:
    payload = None
    req_headers = {"Accept": "application/json"}
    if headers:
        req_headers.update(headers)
    if body is not None:
        payload = json.dumps(body).encode("utf-8")
        req_headers["Content-Type"] = "application/json"

    request_obj = urllib.request.Request(
        f"{BASE_URL}{path}",
        data=payload,
        method=method,
        headers=req_headers,
    )
    try:
        with urllib.request.urlopen(request_obj, timeout=30) as response:
            content = response.read()
            status = response.getcode()
    except urllib.error.HTTPError as exc:  # pragma: no cover - runtime smoke script
        if exc.code == expected:
            return exc.read()
        body_text = exc.read().decode("utf-8", errors="ignore")
        raise RuntimeError(f"{method} {path} -> {exc.code}: {body_text}") from exc

    if status != expected:
        raise RuntimeError(f"{method} {path} -> {status}, expected {expected}")
    return content


def main() -> None:
    for endpoint in ["/health", "/ready", "/docs", "/metrics", "/api/v1/brands"]:
        request(endpoint, expected=200)

    # Wizard round trip exercises the ephemeral store end to end.
    session = json.loads(
        request(
            "/api/v1/brands/puffy/booking-sessions",
            method="POST",
            body={"step": 1, "data": {"smoke": True}},
            expected=201,
        ).decode("utf-8")
    )
    session_path = f"/api/v1/brands/puffy/booking-sessions/{session['session_id']}"
    loaded = json.loads(request(session_path, expected=200).decode("utf-8"))
    if loaded["data"] != {"smoke": True}:
        raise RuntimeError(f"Wizard session round trip returned {loaded['data']!r}")
    request(session_path, method="DELETE", expected=204)
    request(session_path, expected=404)

    print("Smoke checks passed.")


if __name__ == "__main__":
    main()
