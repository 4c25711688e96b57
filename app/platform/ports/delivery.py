from typing import Protocol, runtime_checkable

@runtime_checkable
class DeliveryTransportPort(Protocol):
    """Hands one resolved message to a channel. Raising means the attempt failed."""
    async def deliver(self, recipient: str, subject: str, body: str) -> None: ...
