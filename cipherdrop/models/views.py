"""Read-only projections produced by the listing queries.

They are query results, not entities: nothing stores or mutates them.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SentFileView:
    file_id: uuid.UUID
    file_name: str
    recipient_email: str
    expiration_date: datetime
    created_at: datetime


@dataclass(frozen=True)
class ReceivedFileView:
    shared_id: uuid.UUID
    file_id: uuid.UUID
    file_name: str
    sender_email: str | None
    expiration_date: datetime
    created_at: datetime
