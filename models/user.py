"""
User ORM model — maps to the "users" table.

The credit column is the admission-control ledger: starting an enhancement
job costs JOB_CREDIT_COST credits. The CHECK constraint is a backstop; the
ledger itself never issues an UPDATE that could cross zero (see
JobStore.try_debit_credit).

device_type, ip_address and location are whatever the client reported the
first time it supplied them; later registrations only fill in blanks.
"""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("credit >= 0", name="ck_users_credit_non_negative"),)

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    credit: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    device_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)  # fits IPv6
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<User {self.user_id} credit={self.credit}>"
