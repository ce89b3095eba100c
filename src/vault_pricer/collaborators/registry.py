from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..domain import VAULT_LABEL, VaultRegistration


class BaseVaultRegistry(ABC):
    """Read-only lookup of registered things (vaults) by chain and address."""

    @abstractmethod
    async def find_thing(
        self, chain_id: int, address: str, label: str = VAULT_LABEL
    ) -> VaultRegistration | None:
        """Return the registration for ``address`` or None if it is not registered."""
        ...


class InMemoryVaultRegistry(BaseVaultRegistry):
    """Registry backed by a dict, keyed case-insensitively."""

    def __init__(self, registrations: Iterable[VaultRegistration] = ()):
        self._things: dict[tuple[int, str, str], VaultRegistration] = {}
        for registration in registrations:
            self.add(registration)

    def add(self, registration: VaultRegistration) -> None:
        key = (registration.chain_id, registration.address.lower(), registration.label)
        self._things[key] = registration

    async def find_thing(
        self, chain_id: int, address: str, label: str = VAULT_LABEL
    ) -> VaultRegistration | None:
        return self._things.get((chain_id, address.lower(), label))
