from collections.abc import Generator
from time import perf_counter

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.infrastructure.observability.metrics import observe_db_query


def build_engine(database_uri: str) -> Engine:
    url = make_url(database_uri)
    options: dict = {"pool_pre_ping": True, "echo": settings.db_echo}
    if url.get_backend_name() == "sqlite":
        # Request handlers run in a threadpool while sessions are opened elsewhere.
        options["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **options)


engine = build_engine(settings.sqlalchemy_database_uri)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _operation_label(statement: str) -> str:
    verb = statement.lstrip().split(" ", 1)[0].lower()
    return verb if verb in {"select", "insert", "update", "delete"} else "other"


@event.listens_for(Engine, "before_cursor_execute")
def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_started_at_stack", []).append(perf_counter())


@event.listens_for(Engine, "after_cursor_execute")
def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    stack = conn.info.get("query_started_at_stack", [])
    if not stack:
        return
    observe_db_query(perf_counter() - stack.pop(-1), operation=_operation_label(statement))


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
