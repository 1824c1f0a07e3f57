#app\services\storage.py
import base64
import logging
import re
import time
import uuid

import requests
from app.core.config import settings

logger = logging.getLogger(__name__)

SUPABASE_URL = settings.supabase_url
SUPABASE_SERVICE_ROLE = settings.supabase_service_role
BUCKET = settings.supabase_bucket
SAFE_EXT = re.compile(r"[a-z0-9]{1,10}")


class StorageError(Exception):
    pass


def public_url(path: str) -> str:
    return f"{SUPABASE_URL}/storage/v1/object/public/{BUCKET}/{path}"


def upload_image(data: bytes, content_type: str, path: str) -> str:
    """Uploads to Supabase Storage via REST; returns public URL (bucket must be public)."""
    if not (SUPABASE_URL and SUPABASE_SERVICE_ROLE):
        # storage not configured (local development): inline the image
        logger.warning("Supabase storage is not configured; storing %s as a data URL", path)
        b64 = base64.b64encode(data).decode("utf-8")
        return f"data:{content_type};base64,{b64}"
    url = f"{SUPABASE_URL}/storage/v1/object/{BUCKET}/{path}"
    try:
        r = requests.post(url, headers={
            "Authorization": f"Bearer {SUPABASE_SERVICE_ROLE}",
            "Content-Type": content_type,
        }, data=data, timeout=30)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Photo upload to {BUCKET}/{path} failed: {e}", exc_info=True)
        raise StorageError("Photo upload failed") from e
    return public_url(path)


def make_object_key(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if not SAFE_EXT.fullmatch(ext):
        ext = "jpg"
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"
