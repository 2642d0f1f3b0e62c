import boto3
from botocore.exceptions import ClientError
from raqm.config import settings
import logging

logger = logging.getLogger(__name__)


class S3Storage:
    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name
        self.base_url = f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/"

    def upload_file(self, file_content: bytes, key: str, content_type: str = "image/jpeg") -> str:
        """Upload a publicly readable object to S3 and return its URL"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type
            )
            return self.public_url(key)
        except ClientError as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise

    def public_url(self, key: str) -> str:
        return f"{self.base_url}{key}"

    def key_from_url(self, url: str) -> str:
        if url.startswith(self.base_url):
            return url[len(self.base_url):]
        return url

    def delete_file(self, key: str) -> bool:
        """Delete file from S3"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            logger.error(f"Failed to delete file from S3: {str(e)}")
            return False
