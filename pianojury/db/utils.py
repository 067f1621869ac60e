from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Anchor a ``sqlite:///./relative.db`` URL at ``project_root``.

    Any other URL, including absolute SQLite paths and in-memory
    databases, is returned unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    relative = url[len(prefix):]
    return f"sqlite:///{(project_root / relative).resolve()}"


def dt_iso(dt: Optional[datetime]) -> Optional[str]:
    """Render ``dt`` as an ISO 8601 UTC string.

    SQLite hands back naive datetimes; they are taken to be UTC already.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()
