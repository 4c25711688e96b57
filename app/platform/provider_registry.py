import logging
from app.core.config import settings
from app.platform.ports.delivery import DeliveryTransportPort
from app.platform.adapters.transport_noop import NoopTransport

log = logging.getLogger(__name__)

class ProviderRegistry:
    _delivery_transport: DeliveryTransportPort | None = None

    @classmethod
    def delivery_transport(cls) -> DeliveryTransportPort:
        if cls._delivery_transport is None:
            prov = (settings.DELIVERY_PROVIDER or "noop").lower()
            if prov != "noop":
                # For now, only the simulated transport is shipped. Add other adapters here.
                log.warning(f"Unknown DELIVERY_PROVIDER={prov!r}; falling back to noop")
            cls._delivery_transport = NoopTransport()
        return cls._delivery_transport

registry = ProviderRegistry()
