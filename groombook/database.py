from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from groombook.core.config import DATABASE_URL


engine = create_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False

# Columns added after the first release, applied to existing tables only.
_MIGRATION_STEPS = {
    'business_profiles': [
        ('timezone', 'ALTER TABLE business_profiles ADD COLUMN timezone VARCHAR'),
    ],
    'appointment_settings': [
        ('cancellation_policy_hours', 'ALTER TABLE appointment_settings ADD COLUMN cancellation_policy_hours INTEGER DEFAULT 24'),
        ('allow_same_day_booking', 'ALTER TABLE appointment_settings ADD COLUMN allow_same_day_booking BOOLEAN DEFAULT TRUE'),
    ],
    'appointments': [
        ('service_duration_minutes', 'ALTER TABLE appointments ADD COLUMN service_duration_minutes INTEGER'),
        ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
    ],
}

_INDEXES = {
    'appointments': [
        'CREATE INDEX IF NOT EXISTS idx_appointments_business_date ON appointments(business_id, appointment_date)',
    ],
    'availability_exceptions': [
        'CREATE INDEX IF NOT EXISTS idx_exceptions_business_range '
        'ON availability_exceptions(business_id, start_date, end_date)',
    ],
}


def ensure_booking_schema() -> None:
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        with engine.begin() as connection:
            for table_name, migration_steps in _MIGRATION_STEPS.items():
                if table_name not in table_names:
                    continue

                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))

            for table_name, statements in _INDEXES.items():
                if table_name not in table_names:
                    continue
                for statement in statements:
                    connection.execute(text(statement))

        _booking_schema_checked = True
