"""
Interfaces for collaborators the geocoding core consumes but does not own.

Pin persistence and image storage live in the hosted database/storage
service. Deletion is gated by a shared-secret check performed by the caller.
"""
from typing import List, Protocol, runtime_checkable

from .models import NewPin, Pin


@runtime_checkable
class PinStore(Protocol):
    """Persistent pin storage, newest pins first."""

    async def list_pins(self) -> List[Pin]:
        ...

    async def create_pin(self, pin: NewPin) -> Pin:
        """Persist a pin; raises on storage failure."""
        ...

    async def delete_pin(self, pin_id: str) -> bool:
        """Delete a pin and its image, if any. Returns False when nothing was deleted."""
        ...


@runtime_checkable
class ImageStore(Protocol):
    """Public object storage for pin photos."""

    async def upload(self, data: bytes, content_type: str) -> str:
        """Store the image and return its public URL."""
        ...

    async def delete(self, public_url: str) -> None:
        ...
