"""
Shared pytest fixtures for Credshare tests.
"""

import base64
import json

import pytest

from credshare import (
    Credential,
    CredentialResolver,
    LocalAccountSigner,
    MemoryCredentialStore,
    MemoryViewCountGate,
    RedemptionOrchestrator,
)

OWNER_KEY = "0x" + "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
OTHER_KEY = "0x" + "22" * 32


def encode_document(document) -> str:
    """Encode an arbitrary JSON document the way share tokens are encoded."""
    raw = json.dumps(document, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


@pytest.fixture
def owner_signer() -> LocalAccountSigner:
    """Identity that owns the sample credentials."""
    return LocalAccountSigner(private_key=OWNER_KEY)


@pytest.fixture
def other_signer() -> LocalAccountSigner:
    """An unrelated identity."""
    return LocalAccountSigner(private_key=OTHER_KEY)


@pytest.fixture
def sample_credentials(owner_signer, other_signer) -> list:
    """Credentials for the owner (stored lowercase) and one for the other identity."""
    owner = owner_signer.address.lower()
    return [
        Credential(
            id="1",
            student_address=owner,
            course_name="Advanced Python",
            issuer_name="MIT OpenCourseWare",
            issue_date=1672531200,
            expiration_date=0,
            revoked=False,
        ),
        Credential(
            id="2",
            student_address=owner,
            course_name="Solidity Fundamentals",
            issuer_name="ConsenSys Academy",
            issue_date=1685577600,
            expiration_date=1717200000,
            revoked=False,
        ),
        Credential(
            id="3",
            student_address=other_signer.address,
            course_name="React Architecture",
            issuer_name="Frontend Masters",
            issue_date=1704067200,
            expiration_date=0,
            revoked=True,
        ),
    ]


@pytest.fixture
def credential_store(sample_credentials) -> MemoryCredentialStore:
    """In-memory store seeded with the sample credentials."""
    return MemoryCredentialStore(sample_credentials)


@pytest.fixture
def gate() -> MemoryViewCountGate:
    """A fresh view-count gate."""
    return MemoryViewCountGate(stripes=8)


@pytest.fixture
def orchestrator(credential_store, gate) -> RedemptionOrchestrator:
    """Orchestrator wired to the sample store and a fresh gate."""
    return RedemptionOrchestrator(resolver=CredentialResolver(credential_store), gate=gate)
