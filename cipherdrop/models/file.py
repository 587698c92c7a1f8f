import uuid

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, LargeBinary, String, Uuid

from cipherdrop.database import Base
from cipherdrop.timestamps import utcnow


class File(Base):
    __tablename__ = "files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    file_name = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    # Opaque ciphertext, never decoded server-side.
    encrypted_key = Column(LargeBinary, nullable=False)
    encrypted_payload = Column(LargeBinary, nullable=False)
    iv = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<File {self.id} name={self.file_name}>"
