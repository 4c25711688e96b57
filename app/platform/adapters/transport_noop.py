import logging
from app.platform.ports.delivery import DeliveryTransportPort

log = logging.getLogger("transport.noop")

class NoopTransport(DeliveryTransportPort):
    """Simulated delivery: nothing leaves the process, every attempt succeeds."""
    async def deliver(self, recipient: str, subject: str, body: str) -> None:
        log.info(f"[NOOP TRANSPORT] to={recipient} subject={subject!r} body_len={len(body)}")
