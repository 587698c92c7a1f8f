from cipherdrop.models.user import User
from cipherdrop.models.file import File
from cipherdrop.models.shared_link import SharedLink
from cipherdrop.models.views import ReceivedFileView, SentFileView

__all__ = ["User", "File", "SharedLink", "SentFileView", "ReceivedFileView"]
