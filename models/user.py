from sqlalchemy import Column, String, Boolean, DateTime, func, UniqueConstraint

from models.base import Base, utcnow


class User(Base):
    """
    User ORM model.
    - String primary key carried over from the identity provider
    - Unique email
    - Only referenced here as the author of project notes
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    color_preference = Column(String(32), nullable=True)
    role = Column(String(32), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    def to_author_dict(self) -> dict:
        """
        The subset embedded in project notes.
        """
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "color_preference": self.color_preference,
        }
