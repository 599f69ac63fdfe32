from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from practice_scheduler.core import config


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False


def ensure_scheduling_schema() -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        if 'appointments' not in table_names:
            _scheduling_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_practitioner_range '
                    'ON appointments(practitioner_id, starts_at, ends_at)'
                )
            )
            if 'time_blocks' in table_names:
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_time_blocks_practitioner_range '
                        'ON time_blocks(practitioner_id, starts_at, ends_at)'
                    )
                )

        _scheduling_schema_checked = True
