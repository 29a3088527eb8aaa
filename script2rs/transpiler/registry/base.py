"""Registry storage shared by the API-module, resource-module and node tables."""

from collections.abc import Iterator

from loguru import logger

from script2rs.transpiler.errors import DuplicateRegistrationError, RegistryFrozenError
from script2rs.transpiler.models import (
    CanonicalOperationRef,
    FrontendKind,
    OperationSignature,
    RegistryEntry,
)


class Registry:
    """Maps (frontend, owner, symbol) triples to canonical operations.

    Canonical operations are defined once with their signature; each frontend
    then registers its own spellings for them. After `freeze()` the registry is
    read-only.
    """

    def __init__(self, name: str):
        self.name = name
        self._signatures: dict[CanonicalOperationRef, OperationSignature] = {}
        self._entries: dict[tuple[FrontendKind, str, str], RegistryEntry] = {}
        self._owners: dict[FrontendKind, set[str]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"Registry '{self.name}' is frozen")

    def define(self, ref: CanonicalOperationRef, signature: OperationSignature) -> None:
        """Define a canonical operation and its signature.

        Raises:
            DuplicateRegistrationError: If the operation is already defined
            RegistryFrozenError: If the registry is frozen
        """
        self._check_mutable()
        if ref in self._signatures:
            raise DuplicateRegistrationError(
                f"Operation {ref} defined twice in registry '{self.name}'"
            )
        self._signatures[ref] = signature

    def register(
        self, frontend: FrontendKind, owner: str, symbol: str, ref: CanonicalOperationRef
    ) -> RegistryEntry:
        """Register a frontend spelling for a defined operation.

        Args:
            frontend: Frontend the spelling belongs to
            owner: Owning module or type as spelled by the frontend
            symbol: Member name as spelled by the frontend
            ref: Canonical operation the spelling maps to

        Returns:
            The created registry entry

        Raises:
            DuplicateRegistrationError: If (frontend, owner, symbol) is taken
            RegistryFrozenError: If the registry is frozen
            KeyError: If `ref` was never defined
        """
        self._check_mutable()
        key = (frontend, owner, symbol)
        if key in self._entries:
            raise DuplicateRegistrationError(
                f"Duplicate entry {owner}.{symbol} for {frontend.name} "
                f"in registry '{self.name}'"
            )
        if ref not in self._signatures:
            raise KeyError(f"Operation {ref} is not defined in registry '{self.name}'")
        entry = RegistryEntry(frontend, owner, symbol, ref, self._signatures[ref])
        self._entries[key] = entry
        self._owners.setdefault(frontend, set()).add(owner)
        return entry

    def freeze(self) -> None:
        self._frozen = True
        logger.debug(
            f"Froze registry '{self.name}': {len(self._signatures)} operations, "
            f"{len(self._entries)} spellings"
        )

    def lookup(self, frontend: FrontendKind, owner: str, symbol: str) -> RegistryEntry | None:
        return self._entries.get((frontend, owner, symbol))

    def has_owner(self, frontend: FrontendKind, owner: str) -> bool:
        return owner in self._owners.get(frontend, ())

    def signature(self, ref: CanonicalOperationRef) -> OperationSignature:
        return self._signatures[ref]

    def refs(self) -> Iterator[CanonicalOperationRef]:
        return iter(self._signatures)

    def entries(self) -> Iterator[RegistryEntry]:
        return iter(self._entries.values())

    def __contains__(self, ref: object) -> bool:
        return ref in self._signatures

    def __len__(self) -> int:
        return len(self._signatures)
