"""Property model: bookable rental units."""

from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Property(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An apartment, villa, or room that guests can book."""

    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, default=None)
    property_type: Mapped[str | None] = mapped_column(String(50), default=None)
    max_guests: Mapped[int] = mapped_column(default=1, server_default="1")
    description: Mapped[str | None] = mapped_column(Text, default=None)

    # Relationships; rows are removed by ON DELETE CASCADE, never loaded for deletes
    bookings: Mapped[list["Booking"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (CheckConstraint("max_guests > 0", name="check_max_guests"),)

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name!r}, type={self.property_type!r})>"
