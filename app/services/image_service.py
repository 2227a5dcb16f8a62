# app/services/image_service.py - Product image optimisation and S3 upload

import io
import uuid
import logging
import boto3
from PIL import Image, UnidentifiedImageError
from botocore.exceptions import BotoCoreError, ClientError
from typing import Optional

from app.core.config import Settings

logger = logging.getLogger(__name__)


class InvalidImageError(ValueError):
    """Uploaded bytes are not a readable image"""


class ImageUploadError(Exception):
    """Object storage rejected the upload"""


def basic_image_optimization(image_bytes: bytes, max_size: tuple = (2048, 2048)) -> bytes:
    """Re-encode as a bounded-size JPEG"""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError("File is not a valid image") from e
    if image.mode in ('RGBA', 'LA', 'P'):
        image = image.convert('RGB')
    image.thumbnail(max_size, Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=85, optimize=True)
    buf.seek(0)
    return buf.getvalue()


class S3ImageStorage:
    """Stores product images in a public-read S3 bucket"""

    def __init__(self, bucket: str, region: str, client=None):
        self.bucket = bucket
        self.region = region
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["S3ImageStorage"]:
        if not settings.AWS_BUCKET_NAME:
            return None
        client = boto3.client(
            's3',
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION
        )
        return cls(bucket=settings.AWS_BUCKET_NAME, region=settings.AWS_REGION, client=client)

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload_product_image(self, content: bytes, original_filename: str) -> str:
        """Optimise and upload; returns the public URL to store as the product image"""
        processed = basic_image_optimization(content)
        key = f"products/{uuid.uuid4()}.jpg"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=processed,
                ContentType="image/jpeg",
                CacheControl="public, max-age=86400",
                Metadata={'original_filename': original_filename or "upload"}
            )
        except (BotoCoreError, ClientError) as e:
            raise ImageUploadError(f"Failed to upload to S3: {e}") from e
        logger.info(f"Uploaded product image {key} ({len(processed)} bytes)")
        return self.public_url(key)
