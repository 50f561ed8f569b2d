from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, Uuid, func
import uuid


@as_declarative()
class Base:
    __abstract__ = True  # Prevents creating a table for the base class

    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    # Native UUID on PostgreSQL, CHAR(32) elsewhere
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
