from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column
from agencydesk.models.base import Base, TimestampMixin


class ProfileOwnerType(str, PyEnum):
    USER = "user"
    COLLABORATOR = "collaborator"
    AGENCY = "agency"
    INFLUENCER = "influencer"


class PublicProfile(Base, TimestampMixin):
    """Public showcase page. Scoped by ``user_id``, falling back to ``owner_ref`` for user-owned profiles."""

    __tablename__ = "public_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    owner_type: Mapped[ProfileOwnerType] = mapped_column(
        Enum(ProfileOwnerType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ProfileOwnerType.USER,
    )
    owner_ref: Mapped[int | None] = mapped_column(Integer, nullable=True)
