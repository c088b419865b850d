from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from astdex.config import index_url


def _is_in_memory(db_url: str) -> bool:
    url = make_url(db_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def get_engine(url: str | None = None) -> AsyncEngine:
    db_url = url or index_url()
    if _is_in_memory(db_url):
        # an in-memory database only lives as long as its one shared connection
        return create_async_engine(db_url, poolclass=StaticPool, connect_args={"check_same_thread": False})
    return create_async_engine(db_url)
