import logging
import uuid
from contextlib import contextmanager
from threading import Lock
from typing import Callable, Iterator, TypeVar

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from dental_booking.core import config
from dental_booking.core.errors import TransientStoreError

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

T = TypeVar('T')

connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}
engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def generate_id() -> str:
    return uuid.uuid4().hex


_schema_lock = Lock()
_schema_checked = False

# Columns added after the first release; tables created by older deployments
# are brought forward on startup.
COLUMN_MIGRATIONS = {
    'users': [
        ('subject', 'ALTER TABLE users ADD COLUMN subject VARCHAR'),
        ('age', 'ALTER TABLE users ADD COLUMN age INTEGER'),
        ('gender', 'ALTER TABLE users ADD COLUMN gender VARCHAR'),
        ('address', 'ALTER TABLE users ADD COLUMN address VARCHAR'),
        ('sso_provider', 'ALTER TABLE users ADD COLUMN sso_provider VARCHAR'),
    ],
    'dentists': [
        ('phone', 'ALTER TABLE dentists ADD COLUMN phone VARCHAR'),
        ('is_available', 'ALTER TABLE dentists ADD COLUMN is_available BOOLEAN'),
    ],
    'appointments': [
        ('user_first_name', 'ALTER TABLE appointments ADD COLUMN user_first_name VARCHAR'),
        ('user_last_name', 'ALTER TABLE appointments ADD COLUMN user_last_name VARCHAR'),
        ('user_email', 'ALTER TABLE appointments ADD COLUMN user_email VARCHAR'),
        ('user_phone', 'ALTER TABLE appointments ADD COLUMN user_phone VARCHAR'),
        ('dentist_name', 'ALTER TABLE appointments ADD COLUMN dentist_name VARCHAR'),
        ('dentist_phone', 'ALTER TABLE appointments ADD COLUMN dentist_phone VARCHAR'),
        ('dentist_specialization', 'ALTER TABLE appointments ADD COLUMN dentist_specialization VARCHAR'),
        ('service_name', 'ALTER TABLE appointments ADD COLUMN service_name VARCHAR'),
        ('service_price', 'ALTER TABLE appointments ADD COLUMN service_price NUMERIC(10, 2)'),
        ('service_duration', 'ALTER TABLE appointments ADD COLUMN service_duration INTEGER'),
        ('service_description', 'ALTER TABLE appointments ADD COLUMN service_description TEXT'),
    ],
}

INDEXES = [
    'CREATE INDEX IF NOT EXISTS idx_appointments_user_date ON appointments(user_id, appointment_date)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_dentist_slot '
    'ON appointments(dentist_id, appointment_date, appointment_time)',
    'CREATE INDEX IF NOT EXISTS idx_availability_dentist_date ON availability(dentist_id, date)',
]


def ensure_schema() -> None:
    global _schema_checked

    if _schema_checked:
        return

    with _schema_lock:
        if _schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        with engine.begin() as connection:
            for table_name, migration_steps in COLUMN_MIGRATIONS.items():
                if table_name not in table_names:
                    continue
                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        logger.info('Adding column %s.%s', table_name, column_name)
                        connection.execute(text(statement))
            if {'appointments', 'availability'} <= table_names:
                for statement in INDEXES:
                    connection.execute(text(statement))

        _schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_errors(db: Session) -> Iterator[None]:
    """Roll back and re-raise store failures as TransientStoreError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error('Store operation failed: %s', exc)
        raise TransientStoreError(STORE_UNAVAILABLE_DETAIL) from exc


def read_with_retry(db: Session, query: Callable[[], T]) -> T:
    """Run a pure read, retrying once on a store failure."""
    try:
        return query()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning('Read failed, retrying once: %s', exc)

    with store_errors(db):
        return query()
