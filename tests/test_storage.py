"""Content-addressed document store."""

import pytest

from licensechain.domain.hashing import compute_document_hash, hash_value, verify_hash
from licensechain.infrastructure.storage import DocumentStore, LocalStorageBackend

PDF = b"%PDF-1.4 registration certificate"


@pytest.fixture
def store(tmp_path):
    return DocumentStore(LocalStorageBackend(tmp_path))


def test_hashing():
    document_hash = compute_document_hash(PDF)
    assert document_hash.startswith("sha256:")
    assert len(hash_value(document_hash)) == 64
    assert verify_hash(PDF, document_hash)
    assert not verify_hash(b"other", document_hash)


def test_hash_empty_content():
    with pytest.raises(ValueError):
        compute_document_hash(b"")


async def test_put_and_get(store):
    reference = await store.put(PDF, "Certificate.PDF")

    assert reference == compute_document_hash(PDF) + ".pdf"
    assert await store.get(reference) == PDF
    assert await store.backend.exists(reference)


async def test_identical_uploads_share_a_reference(store):
    first = await store.put(PDF, "a.pdf")
    second = await store.put(PDF, "b.pdf")
    assert first == second


async def test_rejects_empty_and_unsupported(store):
    with pytest.raises(ValueError):
        await store.put(b"", "a.pdf")
    with pytest.raises(ValueError):
        await store.put(PDF, "a.exe", "application/x-msdownload")


async def test_tampered_document(store, tmp_path):
    reference = await store.put(PDF, "a.pdf")
    digest = hash_value(reference).split(".", 1)[0]
    path = tmp_path / digest[:2] / digest[2:4] / hash_value(reference)
    path.write_bytes(b"forged")

    with pytest.raises(ValueError):
        await store.get(reference)


async def test_missing_document(store):
    with pytest.raises(FileNotFoundError):
        await store.get("sha256:" + "0" * 64 + ".pdf")


@pytest.mark.parametrize("reference", ["sha256:../../etc/passwd", "sha256:abc", "md5:" + "0" * 32])
async def test_bad_references(store, reference):
    assert not await store.backend.exists(reference)
    with pytest.raises(ValueError):
        await store.get(reference)
