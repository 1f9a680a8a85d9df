"""Registry of payment gateway factories with lazy, cached instantiation."""

import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any

import structlog

from polypay.core.imports import import_string
from polypay.exceptions import GatewayNotFoundError, InvalidNameError, RegistrationError


if TYPE_CHECKING:
    from polypay.config.settings import GatewaySettings


logger = structlog.get_logger(__name__)

ENTRY_POINT_GROUP = "polypay.gateways"

GatewayFactory = Callable[[], Any]


@dataclass(frozen=True)
class GatewayDescriptor:
    """Factory and metadata registered under a gateway name."""

    name: str
    factory: GatewayFactory
    metadata: Mapping[str, Any] = field(default_factory=dict)


def _key(name: str) -> str:
    return name.strip() if isinstance(name, str) else name


def _lazy_factory(path: str) -> GatewayFactory:
    """Build a factory that imports ``path`` and calls it on first use."""

    def factory() -> Any:
        return import_string(path)()

    factory.__qualname__ = f"lazy_factory[{path}]"
    return factory


class GatewayRegistry:
    """Registry mapping gateway names to deferred factories.

    ``get`` calls a gateway's factory on first access and caches the instance
    until the name is re-registered, unregistered or the registry is cleared.
    Factories may consult the registry (e.g. ``get_metadata``) while running.
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, GatewayDescriptor] = {}
        self._instances: dict[str, Any] = {}
        self._lock = threading.RLock()

    def register(
        self,
        name: str,
        factory: GatewayFactory,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Register a gateway factory.

        Re-registering a name replaces its descriptor and drops the cached
        instance, so the next ``get`` builds a fresh one.

        Args:
            name: Unique gateway name
            factory: Zero-argument callable returning the gateway instance
            metadata: Opaque data stored alongside the factory

        Raises:
            InvalidNameError: If the name is empty
            RegistrationError: If the factory is not callable
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidNameError("Gateway name cannot be empty")
        if not callable(factory):
            raise RegistrationError(f"Factory for gateway '{name}' must be callable")

        name = _key(name)
        descriptor = GatewayDescriptor(
            name=name, factory=factory, metadata=dict(metadata or {})
        )

        with self._lock:
            replaced = name in self._descriptors
            self._descriptors[name] = descriptor
            self._instances.pop(name, None)

        logger.debug(
            "gateway_registered",
            gateway=name,
            replaced=replaced,
            metadata_keys=sorted(descriptor.metadata),
            category="gateway",
        )

    def unregister(self, name: str) -> None:
        """Remove a gateway and its cached instance.

        Raises:
            GatewayNotFoundError: If the gateway is not registered
        """
        name = _key(name)
        with self._lock:
            if name not in self._descriptors:
                raise GatewayNotFoundError(name)
            del self._descriptors[name]
            self._instances.pop(name, None)

        logger.debug("gateway_unregistered", gateway=name, category="gateway")

    def has(self, name: str) -> bool:
        """Check whether a gateway is registered, without instantiating it."""
        with self._lock:
            return _key(name) in self._descriptors

    def get(self, name: str) -> Any:
        """Get the gateway instance, building it on first access.

        Raises:
            GatewayNotFoundError: If the gateway is not registered
        """
        name = _key(name)
        with self._lock:
            if name in self._instances:
                return self._instances[name]

            descriptor = self._descriptors.get(name)
            if descriptor is None:
                raise GatewayNotFoundError(name)

            instance = descriptor.factory()

            # The factory may have re-registered or removed the name
            if self._descriptors.get(name) is descriptor:
                self._instances[name] = instance

        logger.debug(
            "gateway_instantiated",
            gateway=name,
            gateway_type=type(instance).__name__,
            category="gateway",
        )
        return instance

    def get_metadata(self, name: str) -> Mapping[str, Any]:
        """Get the metadata registered with a gateway.

        Raises:
            GatewayNotFoundError: If the gateway is not registered
        """
        with self._lock:
            descriptor = self._descriptors.get(_key(name))
        if descriptor is None:
            raise GatewayNotFoundError(name)
        return descriptor.metadata

    def is_instantiated(self, name: str) -> bool:
        """Check whether a cached instance exists for a gateway."""
        with self._lock:
            return _key(name) in self._instances

    def all(self, instantiated: bool = False) -> list[str]:
        """Get registered gateway names in registration order.

        Args:
            instantiated: Build every gateway before returning

        Returns:
            List of gateway names
        """
        with self._lock:
            names = list(self._descriptors)
        if instantiated:
            for name in names:
                self.get(name)
        return names

    def clear(self) -> None:
        """Remove all gateways and cached instances."""
        with self._lock:
            self._descriptors.clear()
            self._instances.clear()
        logger.debug("gateways_cleared", category="gateway")

    def register_from_settings(self, gateways: "Mapping[str, GatewaySettings]") -> None:
        """Register gateways declared in configuration.

        Factories are import strings resolved on first ``get``; disabled
        entries are skipped.
        """
        for name, gateway_settings in gateways.items():
            if not gateway_settings.enabled:
                logger.debug("gateway_disabled_skipped", gateway=name, category="config")
                continue
            self.register(
                name,
                _lazy_factory(gateway_settings.factory),
                gateway_settings.metadata,
            )

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> list[str]:
        """Register gateway factories published through entry points.

        Entry point names become gateway names. Names that are already
        registered keep their existing descriptor, and entry points that fail
        to load are logged and skipped.

        Args:
            group: Entry point group to scan

        Returns:
            Names of the gateways that were registered
        """
        loaded: list[str] = []
        for ep in entry_points(group=group):
            if self.has(ep.name):
                logger.debug(
                    "entry_point_skipped_preexisting", gateway=ep.name, category="gateway"
                )
                continue
            try:
                factory = ep.load()
            except Exception as e:
                logger.error(
                    "entry_point_load_failed",
                    gateway=ep.name,
                    value=ep.value,
                    error=str(e),
                    exc_info=e,
                    category="gateway",
                )
                continue
            try:
                self.register(ep.name, factory, {"entry_point": ep.value})
            except RegistrationError as e:
                logger.error(
                    "entry_point_invalid_factory",
                    gateway=ep.name,
                    value=ep.value,
                    error=str(e),
                    category="gateway",
                )
                continue
            loaded.append(ep.name)

        logger.debug("entry_points_loaded", group=group, gateways=loaded, category="gateway")
        return loaded

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._descriptors)

    def __iter__(self) -> Iterator[str]:
        return iter(self.all())


__all__ = ["ENTRY_POINT_GROUP", "GatewayDescriptor", "GatewayRegistry"]
