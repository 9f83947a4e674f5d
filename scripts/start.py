#!/usr/bin/env python3
"""
Container entrypoint: run the release step, then exec gunicorn on $PORT.

Environment: PORT (default 3000), WEB_CONCURRENCY (default 2),
SEED_SAMPLE_DATA=1 to add the sample catalog during release.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts.release import run_release

DEFAULT_PORT = 3000


def _port() -> int:
    raw = (os.environ.get("PORT") or "").strip()
    if not raw:
        return DEFAULT_PORT
    port = int(raw)
    if not 0 < port < 65536:
        raise ValueError(f"PORT out of range: {port}")
    return port


def gunicorn_argv(port: int, workers: str) -> list[str]:
    return [
        "gunicorn",
        "app.wildlife.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", workers,
        "--timeout", "60",
        "--graceful-timeout", "30",
        "--preload",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    try:
        port = _port()
        run_release(with_sample_data=(os.environ.get("SEED_SAMPLE_DATA") or "").strip().lower() in ("1", "true", "yes"))
    except (RuntimeError, ValueError) as e:
        print(f"Startup aborted: {e}", file=sys.stderr, flush=True)
        sys.exit(1)

    workers = (os.environ.get("WEB_CONCURRENCY") or "").strip() or "2"
    argv = gunicorn_argv(port, workers)
    print(" ".join(argv), flush=True)
    os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
