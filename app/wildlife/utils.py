from __future__ import annotations


def parse_int(raw: str | None, default: int | None = None) -> int | None:
    raw = (raw or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def safe_next(nxt: str | None) -> str | None:
    """Only allow local paths as redirect targets."""
    nxt = (nxt or "").strip()
    if nxt.startswith("/") and not nxt.startswith("//") and "\\" not in nxt:
        return nxt
    return None

