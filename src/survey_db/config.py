"""Where the survey database lives, resolved from the environment.

``DATABASE_URL`` wins when set; otherwise the URL is assembled from the
``PG_*`` variables that docker-compose files usually provide.  The runtime
talks to Postgres through asyncpg, migrations through libpq.
"""

import os

_SYNC_SCHEME = "postgresql://"
_ASYNC_SCHEME = "postgresql+asyncpg://"


def _url_from_parts() -> str:
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "survey")
    password = os.getenv("PG_PASSWORD", "survey")
    database = os.getenv("PG_DATABASE", "survey")
    return f"{_SYNC_SCHEME}{user}:{password}@{host}:{port}/{database}"


def _configured_url() -> str:
    """The configured URL with any driver suffix removed.

    Heroku-style ``postgres://`` and asyncpg-flavoured URLs both collapse
    to the plain ``postgresql://`` scheme.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        return _url_from_parts()
    for prefix in ("postgres://", _ASYNC_SCHEME):
        if url.startswith(prefix):
            return _SYNC_SCHEME + url[len(prefix):]
    return url


def get_sync_url() -> str:
    """URL for Alembic, which migrates over a blocking connection."""
    return _configured_url()


def get_async_url() -> str:
    """URL for the asyncpg-backed engine used while serving requests."""
    url = _configured_url()
    if url.startswith(_SYNC_SCHEME):
        return _ASYNC_SCHEME + url[len(_SYNC_SCHEME):]
    return url
