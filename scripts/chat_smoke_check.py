#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Any

import httpx


@dataclass
class ProbeResult:
    name: str
    path: str
    ok: bool
    status_code: int | None
    data: Any
    error: str | None


def _probe(
    *,
    client: httpx.Client,
    base_url: str,
    name: str,
    path: str,
    method: str = "GET",
    json_body: dict[str, Any] | None = None,
    accepted_statuses: frozenset[int] = frozenset({200}),
) -> ProbeResult:
    url = f"{base_url.rstrip('/')}{path}"
    try:
        resp = client.request(method, url, json=json_body)
    except httpx.HTTPError as exc:
        return ProbeResult(
            name=name,
            path=path,
            ok=False,
            status_code=None,
            data=None,
            error=f"request_error: {exc}",
        )

    try:
        payload: Any = resp.json()
    except ValueError:
        payload = resp.text

    if resp.status_code not in accepted_statuses:
        return ProbeResult(
            name=name,
            path=path,
            ok=False,
            status_code=resp.status_code,
            data=payload,
            error=f"http_{resp.status_code}",
        )
    return ProbeResult(
        name=name,
        path=path,
        ok=True,
        status_code=resp.status_code,
        data=payload,
        error=None,
    )


def run_probes(*, client: httpx.Client, base_url: str, message: str) -> list[ProbeResult]:
    return [
        _probe(client=client, base_url=base_url, name="health", path="/healthz"),
        _probe(
            client=client,
            base_url=base_url,
            name="chat",
            path="/api/chat",
            method="POST",
            json_body={"message": message},
        ),
        # 400 means the service runs without a key, which is a valid deployment.
        _probe(
            client=client,
            base_url=base_url,
            name="models",
            path="/api/models",
            accepted_statuses=frozenset({200, 400}),
        ),
    ]


def summarize(result: ProbeResult) -> str:
    line = f"[smoke] {result.name} path={result.path} ok={result.ok} status={result.status_code}"
    if result.error:
        line += f" error={result.error}"
    if result.name == "chat" and isinstance(result.data, dict):
        line += f" dev={bool(result.data.get('dev'))} reply={str(result.data.get('reply'))[:80]!r}"
    return line


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Probe a running chat relay instance.")
    parser.add_argument("--base-url", default="http://127.0.0.1:5000")
    parser.add_argument("--message", default="What can you do?")
    parser.add_argument("--timeout-sec", type=float, default=40.0)
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    timeout = httpx.Timeout(timeout=args.timeout_sec)
    with httpx.Client(timeout=timeout) as client:
        results = run_probes(client=client, base_url=args.base_url, message=args.message)

    for item in results:
        print(summarize(item))
    required_failed = [item.name for item in results if item.name != "models" and not item.ok]
    if required_failed:
        print("[smoke] failed=" + ",".join(required_failed))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
