"""URLs of uploaded images (legends, 3D tiles styles, logos)."""

from __future__ import annotations

import logging
import urllib.parse
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from viewer_api.db import database

logger = logging.getLogger(__name__)

CATEGORY_LEGEND = "legend"
CATEGORY_TILESET_3D_STYLE = "tileset3d-style"


class UploadHelper:
    """Resolves upload ids to the URLs the uploads are served at."""

    def __init__(self, repository: database.ConfigurationRepositoryProtocol) -> None:
        self.repository = repository

    def get_url_for_image(self, image_id: str | None, category: str) -> str | None:
        """Return the URL of an uploaded image.

        Args:
            image_id: Upload id (a UUID string).
            category: Upload category the image must belong to.

        Returns:
            ``/api/uploads/{category}/{id}/{filename}``, or None when the id
            is missing, malformed, or no such upload exists in the category.
        """
        if image_id is None:
            return None
        try:
            upload_id = uuid.UUID(image_id)
        except ValueError:
            logger.warning("Invalid upload id \"%s\" for category %s", image_id, category)
            return None

        upload = self.repository.find_upload(upload_id, category)
        if upload is None:
            return None
        filename = urllib.parse.quote(upload.filename)
        return f"/api/uploads/{urllib.parse.quote(category)}/{upload_id}/{filename}"
