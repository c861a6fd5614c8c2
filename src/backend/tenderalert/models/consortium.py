"""
Consortiums - groups of bidders teaming up on a tender.
"""

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenderalert.db.base import Base, TimestampMixin, enum_values


class ConsortiumStatus(str, enum.Enum):
    FORMING = "forming"
    ACTIVE = "active"
    CLOSED = "closed"


class MemberRole(str, enum.Enum):
    LEAD = "lead"
    MEMBER = "member"


class Consortium(Base, TimestampMixin):
    __tablename__ = "consortiums"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tender_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("tenders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    max_members: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    required_skills: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ConsortiumStatus] = mapped_column(
        Enum(ConsortiumStatus, name="consortiumstatus", values_callable=enum_values),
        default=ConsortiumStatus.FORMING,
        nullable=False,
    )

    members: Mapped[list["ConsortiumMember"]] = relationship(
        "ConsortiumMember",
        back_populates="consortium",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Consortium(id={self.id}, name='{self.name}')>"


class ConsortiumMember(Base, TimestampMixin):
    __tablename__ = "consortium_members"
    __table_args__ = (
        UniqueConstraint("consortium_id", "user_id", name="uq_consortium_members_user"),
    )

    consortium_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("consortiums.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[MemberRole] = mapped_column(
        Enum(MemberRole, name="memberrole", values_callable=enum_values),
        default=MemberRole.MEMBER,
        nullable=False,
    )
    expertise: Mapped[str | None] = mapped_column(Text, nullable=True)

    consortium: Mapped[Consortium] = relationship("Consortium", back_populates="members")

    def __repr__(self) -> str:
        return f"<ConsortiumMember(consortium_id={self.consortium_id}, user_id={self.user_id})>"
