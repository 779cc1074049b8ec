import logging
import os
import uuid
from datetime import datetime
from typing import Optional

import boto3
from botocore.exceptions import ClientError
from fastapi import UploadFile

from errors import StoreError, ValidationFailure

logger = logging.getLogger(__name__)


class S3Service:
    def __init__(self, bucket_name: Optional[str], client: boto3.client, region: str):
        """
        Initialize the S3 service with bucket name, client and region
        """
        self.bucket_name = bucket_name
        self.s3 = client
        self.region = region

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    async def upload_image(self, file: UploadFile, max_size_mb: int = 5) -> str:
        """
        Upload an image to S3

        Args:
            file: The image to upload
            max_size_mb: Maximum file size in MB

        Returns:
            The public URL of the uploaded image

        Raises:
            ValidationFailure: If the file isn't an image or is too large
            StoreError: If the bucket isn't configured or the upload fails
        """
        if not self.bucket_name:
            raise StoreError("S3_BUCKET_NAME not set in environment")

        if not (file.content_type or "").startswith("image/"):
            raise ValidationFailure("Only image files are allowed")

        file_content = await file.read()
        if not file_content:
            raise ValidationFailure("Uploaded file is empty")
        if len(file_content) > max_size_mb * 1024 * 1024:
            raise ValidationFailure(f"File size exceeds {max_size_mb}MB limit")

        # Timestamped, unique key that keeps the original name readable
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        filename = os.path.basename(file.filename or "image")
        key = f"images/{timestamp}-{uuid.uuid4().hex}-{filename}"

        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=file.content_type,
            )
        except ClientError as e:
            logger.error("S3 upload error: %s", e)
            raise StoreError("Failed to upload image")

        return self.public_url(key)
