"""
Content hashing for supporting documents.

Documents live off-ledger in a content-addressed store; the record only
keeps an opaque reference derived from the document's hash. This gives
tamper detection on retrieval and deduplication of identical uploads.
"""

import hashlib


HASH_PREFIX = "sha256:"


def compute_document_hash(content: bytes) -> str:
    """
    Compute SHA-256 hash of document content.
    
    Args:
        content: Raw bytes of the document file (PDF, image, etc.)
        
    Returns:
        Hex-encoded SHA-256 hash prefixed with 'sha256:'
    """
    if not content:
        raise ValueError("Cannot hash empty content")
    
    digest = hashlib.sha256(content).hexdigest()
    return f"{HASH_PREFIX}{digest}"


def verify_hash(content: bytes, expected_hash: str) -> bool:
    """
    Verify that content matches an expected hash.
    
    Used for tamper detection when retrieving documents from storage.
    """
    if not expected_hash.startswith(HASH_PREFIX):
        raise ValueError(f"Invalid hash format, expected '{HASH_PREFIX}' prefix: {expected_hash}")
    
    return compute_document_hash(content) == expected_hash


def hash_value(document_hash: str) -> str:
    """Strip the algorithm prefix, leaving the hex digest."""
    if not document_hash.startswith(HASH_PREFIX):
        raise ValueError(f"Invalid hash format: {document_hash}")
    return document_hash[len(HASH_PREFIX):]
