"""Upload policy checks run before any image decoding."""

from ..models.schemas import UploadedImage
from ..utils.config import PolicyConfig
from ..utils.errors import FileTooLargeError, InvalidTypeError
from ..utils.images import canonical_media_type
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UploadValidator:
    """Checks the declared media type and size of an upload.

    Declared values can lie; the normalizer still decodes and checks the
    real dimensions afterwards.
    """

    def __init__(self, policy: PolicyConfig):
        self.policy = policy
        self.allowed_types = {
            canonical_media_type(t, policy.media_type_aliases)
            for t in policy.allowed_media_types
        }

    def validate(self, upload: UploadedImage) -> str:
        """
        Validate an upload against policy.

        Args:
            upload: Uploaded image with declared type and size

        Returns:
            Canonical media type (e.g. ``image/jpeg`` for ``image/jpg``)

        Raises:
            InvalidTypeError: Media type not allowed
            FileTooLargeError: Declared size above the configured maximum
        """
        media_type = canonical_media_type(upload.media_type, self.policy.media_type_aliases)

        if media_type not in self.allowed_types:
            logger.info(
                "Rejected upload with invalid type",
                extra={"media_type": upload.media_type, "upload_filename": upload.filename}
            )
            raise InvalidTypeError(
                f"Invalid file type: {upload.media_type!r}",
                user_message="Invalid file type. Only JPEG and PNG files are allowed.",
            )

        if upload.size > self.policy.max_file_size_bytes:
            limit_mb = self.policy.max_file_size_bytes / (1024 * 1024)
            logger.info(
                "Rejected upload above size limit",
                extra={"size": upload.size, "limit": self.policy.max_file_size_bytes}
            )
            raise FileTooLargeError(
                f"File size {upload.size} exceeds limit {self.policy.max_file_size_bytes}",
                user_message=f"File size exceeds maximum limit of {limit_mb:g}MB",
            )

        return media_type
