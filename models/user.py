from models.base_model import Base, BaseModel, SoftDeleteMixin
from sqlalchemy import Column, String, Index, text


class User(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "users"
    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    __table_args__ = (
        # Email is unique among live accounts only; a deleted account's email can sign up again
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
