"""
Local filesystem storage for uploaded files.

Keys are relative paths organized by tenant:
- pending/{tenant}/{uuid}{ext} for BizFile uploads awaiting extraction
- {tenant}/companies/{company}/{uuid}{ext} for company documents
- {tenant}/processing/{company}/{uuid}{ext} for pipeline uploads
"""
import hashlib
import logging
import shutil
from pathlib import Path
from uuid import UUID, uuid4

from corpsec.config import get_settings

logger = logging.getLogger(__name__)


def sha256_bytes(data: bytes) -> str:
    """Calculate SHA-256 hash of file content."""
    sha256 = hashlib.sha256()
    for start in range(0, len(data), 8192):
        sha256.update(data[start:start + 8192])
    return sha256.hexdigest()


def pending_key(tenant_id: UUID, extension: str) -> str:
    return f"pending/{tenant_id}/{uuid4()}{extension}"


def company_key(tenant_id: UUID, company_id: UUID, extension: str) -> str:
    return f"{tenant_id}/companies/{company_id}/{uuid4()}{extension}"


def processing_key(tenant_id: UUID, company_id: UUID, extension: str) -> str:
    return f"{tenant_id}/processing/{company_id}/{uuid4()}{extension}"


class LocalStorage:
    """File storage rooted at a directory; keys never escape the root."""
    
    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
    
    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        try:
            path.relative_to(self.root)
        except ValueError:
            raise ValueError(f"Storage key escapes root: {key}")
        return path
    
    def upload(self, key: str, data: bytes) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug(f"Stored {len(data)} bytes at {key}")
        return key
    
    def download(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise FileNotFoundError(f"Stored file not found: {key}")
        return path.read_bytes()
    
    def exists(self, key: str) -> bool:
        return self._path(key).is_file()
    
    def move(self, src: str, dst: str) -> str:
        source = self._path(src)
        target = self._path(dst)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))
        return dst
    
    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.is_file():
            path.unlink()


def get_storage() -> LocalStorage:
    """Dependency for file storage."""
    return LocalStorage(get_settings().upload_dir)
