import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid

from cipherdrop.database import Base
from cipherdrop.timestamps import utcnow


class SharedLink(Base):
    __tablename__ = "shared_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    file_id = Column(Uuid, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    password = Column(String(255), nullable=False)
    expiration_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<SharedLink {self.id} file={self.file_id} recipient={self.recipient_user_id}>"
