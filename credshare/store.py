"""
Credshare Credential Store.

Read/write access to indexed credentials. The redemption core only ever asks
for the credentials owned by an address; indexing is used by the credential
issuer. Supports in-memory and JSON-file backed storage.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

EXPIRING_SOON_SECONDS = 30 * 24 * 60 * 60


@dataclass
class Credential:
    """
    An issued course credential.

    Attributes:
        id: Credential identifier.
        student_address: Address of the owning identity.
        course_name: Course or skill certified.
        issuer_name: Name of the issuing institution.
        issue_date: Unix timestamp of issuance.
        expiration_date: Unix timestamp of expiry (0 if no expiry).
        revoked: Whether the issuer revoked the credential.
    """

    id: str
    student_address: str
    course_name: str = ""
    issuer_name: str = ""
    issue_date: int = 0
    expiration_date: int = 0
    revoked: bool = False

    def to_dict(self) -> dict:
        """Convert to wire dictionary."""
        return {
            "id": self.id,
            "studentAddress": self.student_address,
            "courseName": self.course_name,
            "issuerName": self.issuer_name,
            "issueDate": self.issue_date,
            "expirationDate": self.expiration_date,
            "revoked": self.revoked,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        """Create from wire dictionary."""
        return cls(
            id=str(data["id"]),
            student_address=data["studentAddress"],
            course_name=data.get("courseName", ""),
            issuer_name=data.get("issuerName", ""),
            issue_date=int(data.get("issueDate", 0)),
            expiration_date=int(data.get("expirationDate", 0)),
            revoked=bool(data.get("revoked", False)),
        )

    def is_owned_by(self, address: str) -> bool:
        """Case-insensitive owner match."""
        return self.student_address.lower() == address.lower()


def credential_status(expiration_date: int, now: Optional[int] = None) -> str:
    """
    Classify a credential by its expiry.

    Returns:
        "Active", "Expiring Soon" (within 30 days) or "Expired".
    """
    if expiration_date == 0:
        return "Active"

    now = int(time.time()) if now is None else now
    if expiration_date < now:
        return "Expired"
    if expiration_date - now < EXPIRING_SOON_SECONDS:
        return "Expiring Soon"
    return "Active"


def format_address(address: str) -> str:
    """Shorten an address for display (0x1234...abcd)."""
    if not address or len(address) < 10:
        return address or ""
    return f"{address[:6]}...{address[-4:]}"


class CredentialStoreInterface(ABC):
    """Abstract interface for credential storage backends."""

    @abstractmethod
    async def get_credentials_by_owner(self, address: str) -> List[Credential]:
        """All credentials owned by ``address`` (case-insensitive)."""
        pass

    @abstractmethod
    async def add_credential(self, credential: Credential) -> None:
        """Index a credential."""
        pass

    @abstractmethod
    async def list_credentials(self) -> List[Credential]:
        """All indexed credentials."""
        pass


class MemoryCredentialStore(CredentialStoreInterface):
    """
    In-memory credential store for testing and single-instance deployments.

    Example:
        >>> store = MemoryCredentialStore()
        >>> await store.add_credential(Credential(id="1", student_address="0xabc..."))
        >>> await store.get_credentials_by_owner("0xABC...")
        [Credential(id='1', ...)]
    """

    def __init__(self, credentials: Optional[List[Credential]] = None):
        self._credentials: List[Credential] = list(credentials or [])
        self._lock = asyncio.Lock()

    async def get_credentials_by_owner(self, address: str) -> List[Credential]:
        async with self._lock:
            return [c for c in self._credentials if c.is_owned_by(address)]

    async def add_credential(self, credential: Credential) -> None:
        async with self._lock:
            self._credentials.append(credential)
            logger.info(f"Indexed credential: {credential.id}")

    async def list_credentials(self) -> List[Credential]:
        async with self._lock:
            return list(self._credentials)


class JsonFileCredentialStore(CredentialStoreInterface):
    """
    Credential store persisted to a local JSON document.

    The document has the shape ``{"credentials": [...]}`` and is created on
    first access. Suitable for development; use a database in production.

    Example:
        >>> store = JsonFileCredentialStore("data/db.json")
        >>> creds = await store.get_credentials_by_owner(address)
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the JSON file store.

        Args:
            path: Location of the JSON document.
        """
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_db(self) -> None:
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps({"credentials": []}, indent=2), encoding="utf-8")

    def _read(self) -> List[Credential]:
        self._ensure_db()
        data = json.loads(self._path.read_text(encoding="utf-8"))
        return [Credential.from_dict(item) for item in data.get("credentials", [])]

    def _write(self, credentials: List[Credential]) -> None:
        self._ensure_db()
        document = {"credentials": [c.to_dict() for c in credentials]}
        self._path.write_text(json.dumps(document, indent=2), encoding="utf-8")

    async def get_credentials_by_owner(self, address: str) -> List[Credential]:
        async with self._lock:
            credentials = await asyncio.to_thread(self._read)
        return [c for c in credentials if c.is_owned_by(address)]

    async def add_credential(self, credential: Credential) -> None:
        async with self._lock:
            credentials = await asyncio.to_thread(self._read)
            credentials.append(credential)
            await asyncio.to_thread(self._write, credentials)
        logger.info(f"Indexed credential: {credential.id} -> {self._path}")

    async def list_credentials(self) -> List[Credential]:
        async with self._lock:
            return await asyncio.to_thread(self._read)
