from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def normalize_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver and translate ``ssl``/``sslmode``."""
    url = (url or "").strip()
    if not url:
        return url

    parts = urlsplit(url)
    scheme = parts.scheme

    if scheme in {"postgres", "postgresql", "postgresql+psycopg", "postgresql+psycopg2"}:
        scheme = "postgresql+asyncpg"

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    if scheme == "postgresql+asyncpg":
        sslmode_key = next((key for key in query if key.lower() == "sslmode"), None)
        if sslmode_key is not None:
            # asyncpg takes ``ssl`` rather than libpq's ``sslmode``
            mode = query.pop(sslmode_key).lower().strip()
            query.setdefault("ssl", "disable" if mode == "disable" else mode)

    new_query = urlencode(query, doseq=True)
    return urlunsplit((scheme, parts.netloc, parts.path, new_query, parts.fragment))
