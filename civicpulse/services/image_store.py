"""
Image store - durable hosting for issue photos.

The photo is uploaded before analysis because the vision model needs a URL.
It is kept even if a later stage rejects the submission.
"""

from civicpulse.core.exceptions import UploadError
from typing import BinaryIO, Dict, Optional
import logging
import mimetypes
import uuid

logger = logging.getLogger(__name__)


def _object_name(filename: Optional[str], content_type: Optional[str]) -> str:
    extension = ""
    if filename and "." in filename:
        extension = "." + filename.rsplit(".", 1)[-1].lower()
    elif content_type:
        extension = mimetypes.guess_extension(content_type) or ""
    return f"issues/{uuid.uuid4().hex}{extension}"


class FirebaseImageStore:
    """Uploads photos to the Firebase Storage bucket and makes them public."""

    def __init__(self, bucket):
        self.bucket = bucket

    def upload(self, file_obj: BinaryIO, filename: Optional[str] = None, content_type: Optional[str] = None) -> Dict:
        """
        Upload a photo.

        Returns:
            {"secure_url": <public https URL>}

        Raises:
            UploadError: the bucket rejected the upload
        """
        name = _object_name(filename, content_type)
        try:
            blob = self.bucket.blob(name)
            blob.upload_from_file(file_obj, content_type=content_type)
            blob.make_public()
        except Exception as e:
            logger.error(f"Image upload failed for {name}: {e}", exc_info=True)
            raise UploadError("Image upload failed") from e

        logger.info(f"Image uploaded: {name}")
        return {"secure_url": blob.public_url}


class InMemoryImageStore:
    """Keeps photos in memory. Used with USE_MOCK_DB and in tests."""

    BASE_URL = "https://storage.local"

    def __init__(self):
        self.objects: Dict[str, bytes] = {}

    def upload(self, file_obj: BinaryIO, filename: Optional[str] = None, content_type: Optional[str] = None) -> Dict:
        name = _object_name(filename, content_type)
        try:
            self.objects[name] = file_obj.read()
        except (OSError, ValueError) as e:
            raise UploadError("Image upload failed") from e
        return {"secure_url": f"{self.BASE_URL}/{name}"}
