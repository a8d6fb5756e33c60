from supabase import Client
import logging

logger = logging.getLogger(__name__)


class ReportStorage:
    """Report PDFs in a Supabase Storage bucket"""

    def __init__(self, supabase: Client, bucket_name: str):
        if not bucket_name:
            raise ValueError("Reports bucket name must be configured")
        self.supabase = supabase
        self.bucket_name = bucket_name

    def upload_file(self, file_content: bytes, path: str, content_type: str = "application/pdf") -> str:
        """Upload file and return its public URL"""
        bucket = self.supabase.storage.from_(self.bucket_name)
        try:
            bucket.upload(path, file_content, {"content-type": content_type})
        except Exception as e:
            logger.error(f"Failed to upload {path} to {self.bucket_name}: {str(e)}")
            raise
        public_url = bucket.get_public_url(path)
        if not public_url:
            raise ValueError(f"No public URL for {path}")
        return public_url

    def delete_file(self, path: str) -> bool:
        try:
            self.supabase.storage.from_(self.bucket_name).remove([path])
            return True
        except Exception as e:
            logger.warning(f"Failed to delete {path} from {self.bucket_name}: {e}")
            return False
