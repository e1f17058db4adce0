from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from lawhelp.models.base import Base, utcnow


class VerificationCode(Base):
    __tablename__ = "verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(10), nullable=False)
    type = Column(String(30), nullable=False)  # 'email_verification', 'password_reset' or 'two_factor'
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def is_valid(self, now=None) -> bool:
        """Unused and not yet expired."""
        return not self.used and self.expires_at > (now or utcnow())
