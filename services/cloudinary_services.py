# services/cloudinary_services.py
"""
Cloudinary-backed store for booking approval photos.

Photos are uploaded to the ``APPROVAL_PHOTO_FOLDER`` folder under keys of the
form ``{folder}/{timestamp}-{uuid}``. Every stored photo is publicly readable
at a URL derived from its key, so bookings keep the key, the URL and the
original filename.
"""

import cloudinary
import cloudinary.uploader
import cloudinary.api
import cloudinary.exceptions
import cloudinary.utils
from collections import namedtuple
from flask import current_app
from datetime import datetime
import uuid

from services.exceptions import AttachmentStoreError

Attachment = namedtuple('Attachment', ['key', 'url', 'filename'])


class CloudinaryPhotoStore:
    """
    Thin I/O wrapper: put / delete / exists / list / url_for.
    No booking logic lives here.
    """

    def __init__(self, cloud_name=None, api_key=None, api_secret=None, folder='approval-photos'):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder.strip('/')
        self._configured = False

    @classmethod
    def from_config(cls, config):
        return cls(
            cloud_name=config.get('CLOUDINARY_CLOUD_NAME'),
            api_key=config.get('CLOUDINARY_API_KEY'),
            api_secret=config.get('CLOUDINARY_API_SECRET'),
            folder=config.get('APPROVAL_PHOTO_FOLDER', 'approval-photos')
        )

    def is_configured(self):
        """Checking if Cloudinary credentials are available"""
        return all([self.cloud_name, self.api_key, self.api_secret])

    def configure(self):
        if self._configured:
            return
        if not self.is_configured():
            current_app.logger.warning("Cloudinary credentials not configured")
            raise AttachmentStoreError("Cloudinary not configured")

        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True
        )
        self._configured = True
        current_app.logger.info("Cloudinary configured successfully for approval photos")

    def generate_key(self):
        timestamp = int(datetime.utcnow().timestamp() * 1000)
        return f"{self.folder}/{timestamp}-{uuid.uuid4()}"

    def put(self, file_obj, filename):
        """Upload photo bytes under a fresh key and return an Attachment."""
        self.configure()
        key = self.generate_key()
        current_app.logger.info(f"Uploading approval photo '{filename}' as {key}")

        try:
            upload_result = cloudinary.uploader.upload(
                file_obj,
                public_id=key,
                resource_type="image",
                overwrite=False,
                context={'original_filename': filename}
            )
        except Exception as e:
            current_app.logger.error(f"Cloudinary upload error for {filename}: {str(e)}")
            raise AttachmentStoreError(f"Failed to upload approval photo: {str(e)}") from e

        if 'secure_url' not in upload_result or 'public_id' not in upload_result:
            current_app.logger.error(f"Missing required keys in Cloudinary response: {upload_result}")
            raise AttachmentStoreError("Invalid response from Cloudinary - missing URL or public_id")

        current_app.logger.info(f"Approval photo uploaded successfully: {upload_result['secure_url']}")
        return Attachment(
            key=upload_result['public_id'],
            url=upload_result['secure_url'],
            filename=filename
        )

    def delete(self, key):
        """Delete ``key``; raises AttachmentStoreError unless Cloudinary confirms it."""
        self.configure()
        try:
            result = cloudinary.uploader.destroy(key, resource_type="image", invalidate=True)
        except Exception as e:
            raise AttachmentStoreError(f"Error deleting image {key}: {str(e)}") from e

        if result.get('result') != 'ok':
            raise AttachmentStoreError(f"Delete failed for {key}: {result.get('result', 'unknown error')}")
        current_app.logger.info(f"Successfully deleted image: {key}")

    def exists(self, key):
        self.configure()
        try:
            cloudinary.api.resource(key, resource_type="image")
            return True
        except cloudinary.exceptions.NotFound:
            return False
        except Exception as e:
            raise AttachmentStoreError(f"Error checking image {key}: {str(e)}") from e

    def list(self, prefix=None, limit=500):
        """List stored photos under ``prefix`` (defaults to the photo folder)."""
        self.configure()
        prefix = prefix or f"{self.folder}/"
        try:
            response = cloudinary.api.resources(
                type="upload",
                resource_type="image",
                prefix=prefix,
                max_results=max(1, min(int(limit), 500))
            )
        except Exception as e:
            raise AttachmentStoreError(f"Error listing images under {prefix}: {str(e)}") from e

        return [
            {
                'key': resource['public_id'],
                'url': resource.get('secure_url') or self.url_for(resource['public_id']),
                'size': resource.get('bytes'),
                'last_modified': resource.get('created_at')
            }
            for resource in response.get('resources', [])
        ]

    def url_for(self, key):
        """Deterministic public URL for ``key``."""
        self.configure()
        url, _ = cloudinary.utils.cloudinary_url(key, resource_type="image", type="upload", secure=True)
        return url


def get_photo_store():
    """The store installed on the running app by ``create_app``."""
    return current_app.extensions['photo_store']
