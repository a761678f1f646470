"""
Local-disk storage for uploaded media files.
"""

import logging
import os

from fastapi import UploadFile

from src.transcription.errors import MediaTooLargeError, NotFoundError

logger = logging.getLogger(__name__)


class MediaStorage:
    """Stores uploads as ``{upload_dir}/{job_id}_{filename}``."""

    def __init__(
        self,
        upload_dir: str,
        max_upload_size: int,
        chunk_size: int = 1024 * 1024,
    ) -> None:
        self._upload_dir = upload_dir
        self._max_upload_size = max_upload_size
        self._chunk_size = chunk_size
        os.makedirs(upload_dir, exist_ok=True)

    def path_for(self, media_locator: str) -> str:
        # Locators are bare file names; never let one escape the upload dir
        return os.path.join(self._upload_dir, os.path.basename(media_locator))

    async def save_upload(self, job_id: str, upload: UploadFile) -> str:
        """
        Stream an upload to disk and return its media locator.

        Nothing is left on disk when the upload fails part way, whether
        from the size limit, a read error or a cancelled request.
        """
        media_locator = f"{job_id}_{os.path.basename(upload.filename)}"
        media_path = self.path_for(media_locator)

        total_bytes = 0
        try:
            with open(media_path, "wb") as media_file:
                while True:
                    chunk = await upload.read(self._chunk_size)
                    if not chunk:
                        break
                    total_bytes += len(chunk)
                    if total_bytes > self._max_upload_size:
                        logger.warning(
                            "Upload for job %s exceeded %d bytes; discarded",
                            job_id, self._max_upload_size,
                        )
                        raise MediaTooLargeError(self._max_upload_size)
                    media_file.write(chunk)
        except BaseException:
            self.delete(media_locator)
            raise

        logger.debug("File saved to %s (%d bytes)", media_path, total_bytes)
        return media_locator

    def delete(self, media_locator: str) -> None:
        """Remove a stored media file; a missing file is ignored."""
        media_path = self.path_for(media_locator)
        try:
            os.remove(media_path)
        except FileNotFoundError:
            return
        logger.debug("Removed %s", media_path)

    def get_media_bytes(self, media_locator: str) -> bytes:
        """Return the raw bytes of a stored media file."""
        media_path = self.path_for(media_locator)
        try:
            with open(media_path, "rb") as media_file:
                return media_file.read()
        except FileNotFoundError as exc:
            logger.warning("Media %s not found at %s", media_locator, media_path)
            raise NotFoundError(f"Media {media_locator} not found") from exc
