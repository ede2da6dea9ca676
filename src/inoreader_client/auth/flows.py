"""Credential flow capabilities used by the token manager.

A flow mints a brand new credential when none is cached. Flows that can also
exchange a refresh token implement :class:`RefreshableFlow`; the manager
checks for that capability instead of for a concrete class.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..oauth.storage import TokenRecord
from .credential import Credential


@runtime_checkable
class CredentialFlow(Protocol):
    """Produces a bearer credential from raw app/user secrets."""

    def has_credential(self, record: TokenRecord) -> bool:
        """Whether ``record`` already holds this flow's credential."""
        ...

    def credential(self, record: TokenRecord) -> Credential:
        """Build the credential for a record that :meth:`has_credential` accepted."""
        ...

    async def authorize(self) -> TokenRecord:
        """Run the full authorization and return the newly granted tokens."""
        ...


@runtime_checkable
class RefreshableFlow(CredentialFlow, Protocol):
    """A flow whose credential expires and can be renewed without user interaction."""

    async def refresh(self, record: TokenRecord) -> TokenRecord:
        """Exchange ``record.refresh_token`` for new tokens."""
        ...
