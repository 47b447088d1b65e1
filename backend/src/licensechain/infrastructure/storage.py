"""
Content-addressed document store for supporting documents.

Applicants upload proof documents at submission time; the ledger record
only keeps the opaque reference returned by `put`. The lifecycle and
verification logic never look inside a document.

Design Decisions:
- Backends sit behind StorageBackend so IPFS or S3 can replace local disk
- Files are addressed by the SHA-256 of their bytes
- Reference is "sha256:<hex><ext>" so it carries its own integrity check
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from licensechain.domain.hashing import HASH_PREFIX, compute_document_hash, hash_value, verify_hash

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/jpg",
})


@dataclass
class StoredDocument:
    """What the backend recorded for one upload."""
    reference: str
    document_hash: str
    size_bytes: int
    content_type: str


class StorageBackend(ABC):
    """Where supporting documents physically live."""

    @abstractmethod
    async def store(self, content: bytes, filename: str, content_type: str) -> StoredDocument:
        """Persist `content` and describe where it went."""
        pass

    @abstractmethod
    async def retrieve(self, reference: str) -> bytes:
        """Raw bytes for a reference returned by `store`."""
        pass

    @abstractmethod
    async def exists(self, reference: str) -> bool:
        """Whether a reference resolves to a stored file."""
        pass


class LocalStorageBackend(StorageBackend):
    """
    Documents on local disk, sharded by the first two hash bytes:
    base_path/
        ab/
            cd/
                abcd1234....pdf
    """

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path.resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Local storage initialized at {self.base_path}")

    def _path_for(self, reference: str) -> Path:
        """Map a reference back to its file, refusing anything outside the store."""
        name = hash_value(reference)
        digest = name.split(".", 1)[0]
        if len(digest) != 64 or any(c not in "0123456789abcdef" for c in digest):
            raise ValueError(f"Invalid document reference: {reference}")

        file_path = (self.base_path / digest[:2] / digest[2:4] / name).resolve()
        if not file_path.is_relative_to(self.base_path):
            raise ValueError("Path traversal not allowed")
        return file_path

    async def store(self, content: bytes, filename: str, content_type: str) -> StoredDocument:
        """
        Write `content` under its hash-derived path.

        Identical uploads land on the same path and are written once.
        """
        document_hash = compute_document_hash(content)
        ext = Path(filename).suffix.lower()
        reference = f"{document_hash}{ext}"
        file_path = self._path_for(reference)

        if not file_path.exists():
            file_path.parent.mkdir(parents=True, exist_ok=True)
            # Write atomically (write to temp, then rename)
            temp_path = file_path.with_name(file_path.name + ".tmp")
            try:
                temp_path.write_bytes(content)
                temp_path.rename(file_path)
            except Exception:
                temp_path.unlink(missing_ok=True)
                raise

        return StoredDocument(
            reference=reference,
            document_hash=document_hash,
            size_bytes=len(content),
            content_type=content_type,
        )

    async def retrieve(self, reference: str) -> bytes:
        file_path = self._path_for(reference)
        if not file_path.exists():
            raise FileNotFoundError(f"Document not found: {reference}")
        return file_path.read_bytes()

    async def exists(self, reference: str) -> bool:
        try:
            return self._path_for(reference).exists()
        except ValueError:
            return False


class DocumentStore:
    """
    put/get over a storage backend with type checks and tamper detection.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    async def put(
        self,
        content: bytes,
        filename: str,
        content_type: str = "application/pdf",
    ) -> str:
        """
        Store a supporting document.

        Returns:
            Opaque reference to keep on the ledger record

        Raises:
            ValueError: If the document is empty or of an unsupported type
        """
        if not content:
            raise ValueError("Cannot store empty document")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValueError(f"Unsupported document type: {content_type}")

        stored = await self.backend.store(content, filename, content_type)
        logger.info(f"Stored document {filename} ({stored.size_bytes} bytes) as {stored.reference}")
        return stored.reference

    async def get(self, reference: str) -> bytes:
        """
        Retrieve a document and verify it still matches its reference.

        Raises:
            FileNotFoundError: If no such document
            ValueError: If the content no longer matches its hash
        """
        content = await self.backend.retrieve(reference)
        expected_hash = HASH_PREFIX + hash_value(reference).split(".", 1)[0]
        if not verify_hash(content, expected_hash):
            logger.error(f"Hash mismatch for {reference}")
            raise ValueError("Document integrity check failed")
        return content
