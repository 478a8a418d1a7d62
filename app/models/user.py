from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from app.database import Base, utcnow

user_groups = Table(
    "users_groups",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
)


# Group model
class Group(Base):
    __tablename__ = "groups"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    permissions = Column(JSON, nullable=False, default=dict)
    users = relationship("User", secondary=user_groups, back_populates="groups")


# User model
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)  # the login attribute
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    activated = Column(Boolean, nullable=False, default=False)
    activation_code = Column(String, nullable=True, index=True)
    activated_at = Column(DateTime, nullable=True)
    reset_password_code = Column(String, nullable=True, index=True)
    persist_code = Column(String, nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    groups = relationship("Group", secondary=user_groups, back_populates="users", lazy="selectin")
    throttle = relationship(
        "Throttle",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def group_names(self) -> list[str]:
        return [group.name for group in self.groups]

    def in_group(self, name: str) -> bool:
        return name in self.group_names


# Login throttling state, one row per user
class Throttle(Base):
    __tablename__ = "throttle"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    suspended = Column(Boolean, nullable=False, default=False)
    banned = Column(Boolean, nullable=False, default=False)
    last_attempt_at = Column(DateTime, nullable=True)
    suspended_at = Column(DateTime, nullable=True)
    user = relationship("User", back_populates="throttle")
