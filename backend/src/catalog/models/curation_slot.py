"""Collection-wide curation slot records."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from catalog.core.database import Base
from catalog.models.base import TimestampMixin


class CurationSlot(Base, TimestampMixin):
    """Settings row for a flag with a collection-wide cardinality limit.

    Granting the flag locks this row (``SELECT ... FOR UPDATE``) before the
    holder count is read, so two grants cannot both pass the count check.
    """

    __tablename__ = "curation_slots"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
