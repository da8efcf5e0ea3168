"""Image Host Client — uploads and deletes product images on Cloudinary.

Invariants:
    - Uploads land in the configured folder with an 800x800 "limit" crop and
      automatic quality
    - upload_image returns the secure (https) URL
    - All SDK failures mapped to ImageHostError (core/errors.py)

Design Decisions:
    - The cloudinary SDK is blocking: every call runs in a worker thread
      (anyio.to_thread) so the event loop is never held by an upload
    - Credentials passed per call, no global cloudinary.config() side effects
"""

import logging
from functools import partial

import anyio.to_thread
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinarySDKError

from stylesage.core.domain_types import IMAGE_FOLDER
from stylesage.core.errors import ImageHostError

logger = logging.getLogger(__name__)

_TRANSFORMATION = [
    {"width": 800, "height": 800, "crop": "limit"},
    {"quality": "auto"},
]


class CloudinaryImageHost:
    """Async facade over the blocking cloudinary uploader."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = IMAGE_FOLDER,
    ):
        self.folder = folder
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "secure": True,
        }

    async def upload_image(self, data: bytes, filename: str | None = None) -> str:
        call = partial(
            cloudinary.uploader.upload,
            data,
            folder=self.folder,
            resource_type="image",
            transformation=_TRANSFORMATION,
            **self._credentials,
        )
        try:
            result = await anyio.to_thread.run_sync(call)
        except CloudinarySDKError as e:
            logger.error(f"Image upload failed for {filename}: {e}")
            raise ImageHostError(str(e), "upload")
        return result["secure_url"]

    async def delete_image(self, public_id: str) -> bool:
        """Destroy one image; returns True when the host reports 'ok'."""
        call = partial(
            cloudinary.uploader.destroy, public_id,
            resource_type="image", **self._credentials,
        )
        try:
            result = await anyio.to_thread.run_sync(call)
        except CloudinarySDKError as e:
            raise ImageHostError(str(e), "delete")
        return result.get("result") == "ok"
