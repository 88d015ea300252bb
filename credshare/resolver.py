"""
Credshare Credential Resolver.

Finds the credential a share token points at, scoped to the address that
signed the token. The signer can only ever reach its own credentials.
"""

import logging

from credshare.errors import InternalError, NotFoundError
from credshare.store import Credential, CredentialStoreInterface

logger = logging.getLogger(__name__)


class CredentialResolver:
    """
    Resolves (owner address, credential id) pairs against a credential store.

    Example:
        >>> resolver = CredentialResolver(store)
        >>> credential = await resolver.resolve_owned_credential(owner, "1")
    """

    def __init__(self, store: CredentialStoreInterface):
        self._store = store

    @property
    def store(self) -> CredentialStoreInterface:
        return self._store

    async def resolve_owned_credential(self, address: str, credential_id: str) -> Credential:
        """
        Return the credential ``credential_id`` owned by ``address``.

        Raises:
            NotFoundError: If ``address`` owns no credential with that id. The
                same error covers a wrong id, an unknown owner and a token
                signed by a different identity.
            InternalError: If the store query fails.
        """
        try:
            owned = await self._store.get_credentials_by_owner(address)
        except Exception as e:
            logger.error(f"Credential store query failed for {address}: {e}")
            raise InternalError() from e

        for credential in owned:
            if credential.id == credential_id and credential.is_owned_by(address):
                return credential

        logger.warning(f"No credential {credential_id!r} owned by {address}")
        raise NotFoundError()
