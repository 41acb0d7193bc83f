from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    func,
)
from sqlalchemy.orm import sessionmaker

from planboard import config

metadata = MetaData()

activities = Table(
    "activities",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("project_id", Integer, index=True),
    Column("name", Text, nullable=False),
    Column("planned_start_date", Date),
    Column("planned_end_date", Date),
    Column("duration", Integer),
    Column("is_auto_scheduled", Boolean, default=True),
    Column("critical_path", Boolean, default=False),
    Column("updated_at", DateTime, server_default=func.now()),
)

activity_dependencies = Table(
    "activity_dependencies",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("predecessor_id", Integer, ForeignKey("activities.id"), nullable=False, index=True),
    Column("successor_id", Integer, ForeignKey("activities.id"), nullable=False, index=True),
    Column("dependency_type", Text, nullable=False, default="finish_to_start"),
    Column("lag_time", Integer, default=0),
    Column("is_active", Boolean, default=True),
)

activity_constraints = Table(
    "activity_constraints",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("activity_id", Integer, ForeignKey("activities.id"), nullable=False, index=True),
    Column("constraint_type", Text, nullable=False),
    Column("constraint_date", Date, nullable=False),
    Column("priority", Text, default="medium"),
    Column("description", Text),
    Column("is_active", Boolean, default=True),
)

_connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(config.DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create the scheduling tables if they do not exist yet."""
    metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
