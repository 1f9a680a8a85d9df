"""Registry of lifecycle hook handlers.

Each slot holds a priority-ordered list of handler descriptors plus an
optional :class:`SlotConfig`. A handler is one of three kinds:

- ``INVOCABLE``: a function, method, builtin or ``functools.partial``, called
  as-is. Capability contracts cannot be checked on these.
- ``TYPE_REFERENCE``: a class (or an import string naming one), instantiated
  fresh on every invocation.
- ``INSTANCE``: any other object, shared across invocations.

Objects are invoked directly when callable, otherwise through their
``handle`` or ``execute`` method.
"""

import functools
import inspect
import threading
import types
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import Any

import structlog

from polypay.core.imports import import_string
from polypay.exceptions import (
    HookValidationError,
    InvalidConfigError,
    RegistrationError,
    SlotEmptyError,
)

from .events import ReturnPolicy, SlotKey, normalize_slot


logger = structlog.get_logger(__name__)

Contracts = frozenset[type]


class HandlerKind(str, Enum):
    """Tag describing how a registered handler is turned into a callable"""

    INVOCABLE = "invocable"
    TYPE_REFERENCE = "type_reference"
    INSTANCE = "instance"


@dataclass(frozen=True)
class SlotConfig:
    """Per-slot behaviour settings."""

    slot: SlotKey
    allow_multiple: bool = True
    default_priority: int = 0
    return_policy: ReturnPolicy = ReturnPolicy.IGNORE
    required_contracts: Contracts | None = None

    @property
    def is_transform(self) -> bool:
        """Whether ``execute`` hands back the first handler's return value."""
        return not self.allow_multiple and self.return_policy is ReturnPolicy.SINGLE


@dataclass(frozen=True, eq=False)
class HandlerDescriptor:
    """A handler registered on a slot."""

    handler: Any
    kind: HandlerKind
    priority: int
    contracts: Contracts | None = None
    # Resolved class for type references, the handler itself otherwise
    target: Any = None


def _same_handler(a: Any, b: Any) -> bool:
    # Bound methods are rebuilt on each attribute access, so compare by value
    if isinstance(a, str | types.MethodType) and isinstance(b, str | types.MethodType):
        return bool(a == b)
    return a is b


def _callable_form(instance: Any) -> Callable[..., Any] | None:
    if callable(instance):
        return instance  # type: ignore[no-any-return]
    for method_name in ("handle", "execute"):
        method = getattr(instance, method_name, None)
        if callable(method):
            return method  # type: ignore[no-any-return]
    return None


def _contract_names(contracts: Iterable[type]) -> list[str]:
    return sorted(c.__qualname__ for c in contracts)


class HookRegistry:
    """Registry of hook handlers keyed by lifecycle slot.

    All mutation and snapshotting happens under a re-entrant lock; handlers
    themselves run outside the lock so they may register or remove hooks.
    """

    def __init__(self) -> None:
        self._handlers: dict[SlotKey, list[HandlerDescriptor]] = {}
        self._configs: dict[SlotKey, SlotConfig] = {}
        self._lock = threading.RLock()

    # === Configuration ===

    def configure_slot(
        self,
        slot: SlotKey,
        allow_multiple: bool = True,
        default_priority: int = 0,
        return_policy: ReturnPolicy | str = ReturnPolicy.IGNORE,
        required_contracts: Iterable[type | str] | None = None,
    ) -> SlotConfig:
        """Configure how a slot accepts and executes handlers.

        Overwrites any previous configuration. Handlers that are already
        registered are not re-validated.

        Args:
            slot: Slot to configure
            allow_multiple: If False, each registration replaces all handlers
            default_priority: Priority for handlers registered without one
            return_policy: ``IGNORE`` or ``SINGLE``
            required_contracts: Contract classes (or import strings naming
                them) every handler must satisfy

        Returns:
            The stored slot configuration

        Raises:
            InvalidConfigError: If the return policy, priority or a contract
                is invalid
        """
        slot = self._check_slot(slot, InvalidConfigError)

        if isinstance(return_policy, str) and not isinstance(
            return_policy, ReturnPolicy
        ):
            return_policy = return_policy.lower()
        try:
            policy = ReturnPolicy(return_policy)
        except ValueError:
            raise InvalidConfigError(
                f"Invalid return policy {return_policy!r} for slot '{slot}'. "
                f"Must be one of {[p.value for p in ReturnPolicy]}"
            ) from None

        if not isinstance(default_priority, int) or isinstance(default_priority, bool):
            raise InvalidConfigError(
                f"default_priority for slot '{slot}' must be an integer"
            )

        contracts = None
        if required_contracts is not None:
            contracts = self._resolve_contracts(required_contracts, InvalidConfigError)

        config = SlotConfig(
            slot=slot,
            allow_multiple=bool(allow_multiple),
            default_priority=default_priority,
            return_policy=policy,
            required_contracts=contracts,
        )

        if config.allow_multiple and policy is ReturnPolicy.SINGLE:
            logger.warning(
                "hook_slot_single_return_on_multiple",
                slot=str(slot),
                message="return values are only propagated for single-handler slots",
                category="hook",
            )

        with self._lock:
            self._configs[slot] = config

        logger.debug(
            "hook_slot_configured",
            slot=str(slot),
            allow_multiple=config.allow_multiple,
            default_priority=default_priority,
            return_policy=policy.value,
            contracts=_contract_names(contracts or ()),
            category="hook",
        )
        return config

    def get_config(self, slot: SlotKey) -> SlotConfig:
        """Get the slot configuration, or the implicit default."""
        slot = normalize_slot(slot)
        with self._lock:
            config = self._configs.get(slot)
        return config if config is not None else SlotConfig(slot=slot)

    # === Registration ===

    def register(
        self,
        slot: SlotKey,
        handler: Any,
        priority: int | None = None,
        contracts: Iterable[type | str] | None = None,
    ) -> None:
        """Register a handler on a slot.

        Registering the same handler with the same contracts twice is a no-op.

        Args:
            slot: Slot to register on
            handler: Function, class, import string naming a class, or instance
            priority: Higher runs first; defaults to the slot's default priority
            contracts: Contracts to enforce instead of the slot's required ones

        Raises:
            RegistrationError: If the handler cannot be accepted on this slot
        """
        slot = self._check_slot(slot, RegistrationError)
        kind, target = self._classify(handler)

        with self._lock:
            config = self.get_config(slot)

            if priority is None:
                priority = config.default_priority
            elif not isinstance(priority, int) or isinstance(priority, bool):
                raise RegistrationError(f"Priority for slot '{slot}' must be an integer")

            if contracts is not None:
                effective = self._resolve_contracts(contracts, RegistrationError)
            else:
                effective = config.required_contracts

            if effective and kind is HandlerKind.INVOCABLE:
                raise RegistrationError(
                    f"Cannot register a plain callable on slot '{slot}' with contracts "
                    f"{_contract_names(effective)}; register a class or instance instead"
                )

            if effective:
                self._assert_satisfies(kind, target, effective)

            descriptor = HandlerDescriptor(
                handler=handler,
                kind=kind,
                priority=priority,
                contracts=effective,
                target=target,
            )

            handlers = self._handlers.setdefault(slot, [])

            if not config.allow_multiple and handlers:
                logger.debug(
                    "hook_single_slot_replaced",
                    slot=str(slot),
                    replaced=len(handlers),
                    category="hook",
                )
                handlers.clear()

            for entry in handlers:
                if _same_handler(entry.handler, handler) and entry.contracts == effective:
                    logger.debug(
                        "hook_duplicate_ignored",
                        slot=str(slot),
                        handler=self._describe(handler),
                        category="hook",
                    )
                    return

            handlers.append(descriptor)
            handlers.sort(key=attrgetter("priority"), reverse=True)

        logger.debug(
            "hook_registered",
            slot=str(slot),
            handler=self._describe(handler),
            kind=kind.value,
            priority=priority,
            category="hook",
        )

    def on(
        self,
        slot: SlotKey,
        priority: int | None = None,
        contracts: Iterable[type | str] | None = None,
    ) -> Callable[[Any], Any]:
        """Decorator to register a handler.

        Usage:
            @hooks.on(HookSlot.AFTER_SUCCESS)
            def notify(result, gateway_name):
                ...
        """

        def decorator(handler: Any) -> Any:
            self.register(slot, handler, priority=priority, contracts=contracts)
            return handler

        return decorator

    def remove(self, slot: SlotKey, handler: Any) -> None:
        """Remove every registration of ``handler`` from a slot.

        Does nothing if the handler is not registered.
        """
        slot = normalize_slot(slot)
        with self._lock:
            handlers = self._handlers.get(slot)
            if not handlers:
                return
            remaining = [e for e in handlers if not _same_handler(e.handler, handler)]
            removed = len(handlers) - len(remaining)
            if remaining:
                self._handlers[slot] = remaining
            else:
                del self._handlers[slot]

        if removed:
            logger.debug(
                "hook_removed",
                slot=str(slot),
                handler=self._describe(handler),
                removed=removed,
                category="hook",
            )

    def clear(self, slot: SlotKey | None = None) -> None:
        """Remove all handlers of one slot, or of every slot.

        Slot configuration is kept.
        """
        with self._lock:
            if slot is None:
                self._handlers.clear()
            else:
                self._handlers.pop(normalize_slot(slot), None)
        logger.debug("hooks_cleared", slot=str(slot) if slot else None, category="hook")

    # === Lookup ===

    def has_handlers(self, slot: SlotKey) -> bool:
        """Check whether any handler is registered on a slot."""
        with self._lock:
            return bool(self._handlers.get(normalize_slot(slot)))

    def get_handlers(self, slot: SlotKey) -> list[HandlerDescriptor]:
        """Get the handlers of a slot in execution order.

        Raises:
            SlotEmptyError: If the slot has no handlers
        """
        slot = normalize_slot(slot)
        with self._lock:
            handlers = self._handlers.get(slot)
            if not handlers:
                raise SlotEmptyError(slot)
            return list(handlers)

    def slots(self) -> list[SlotKey]:
        """Get every slot that currently holds handlers."""
        with self._lock:
            return [slot for slot, handlers in self._handlers.items() if handlers]

    # === Execution ===

    def execute(self, slot: SlotKey, *args: Any) -> Any:
        """Run the handlers of a slot in priority order.

        Args:
            slot: Slot to execute
            *args: Arguments passed to every handler

        Returns:
            For single-handler slots with the ``SINGLE`` return policy, the
            handler's return value; ``None`` otherwise (and for empty slots)

        Raises:
            HookValidationError: If a handler no longer satisfies its contracts;
                later handlers are not run
        """
        slot = normalize_slot(slot)
        with self._lock:
            handlers = list(self._handlers.get(slot, ()))
            config = self._configs.get(slot) or SlotConfig(slot=slot)

        if not handlers:
            return None

        logger.debug(
            "hook_execute",
            slot=str(slot),
            handlers=len(handlers),
            return_policy=config.return_policy.value,
            category="hook",
        )

        for entry in handlers:
            fn = self._resolve_callable(slot, entry)
            if fn is None:
                continue

            value = fn(*args)

            if config.is_transform:
                return value

        return None

    # === Helpers ===

    @staticmethod
    def _check_slot(slot: SlotKey, error: type[Exception]) -> SlotKey:
        if not isinstance(slot, str) or not slot.strip():
            raise error("Slot name must be a non-empty string")
        return normalize_slot(slot)

    @staticmethod
    def _classify(handler: Any) -> tuple[HandlerKind, Any]:
        if handler is None:
            raise RegistrationError(
                "Hook must be a callable, class, class import string or instance"
            )

        if isinstance(handler, str):
            try:
                target = import_string(handler)
            except ImportError as e:
                raise RegistrationError(
                    f"Hook class '{handler}' does not exist: {e}"
                ) from e
            if not isinstance(target, type):
                raise RegistrationError(f"Hook '{handler}' does not name a class")
            return HandlerKind.TYPE_REFERENCE, target

        if isinstance(handler, type):
            return HandlerKind.TYPE_REFERENCE, handler

        if inspect.isroutine(handler) or isinstance(handler, functools.partial):
            return HandlerKind.INVOCABLE, handler

        return HandlerKind.INSTANCE, handler

    @staticmethod
    def _resolve_contracts(
        contracts: Iterable[type | str], error: type[Exception]
    ) -> Contracts | None:
        if isinstance(contracts, str | type):
            contracts = [contracts]

        resolved: set[type] = set()
        for contract in contracts:
            if isinstance(contract, str):
                try:
                    contract = import_string(contract)
                except ImportError as e:
                    raise error(f"Contract '{contract}' cannot be imported: {e}") from e
            if not isinstance(contract, type):
                raise error(f"Contract {contract!r} must be a class")
            resolved.add(contract)

        return frozenset(resolved) or None

    @staticmethod
    def _assert_satisfies(kind: HandlerKind, target: Any, contracts: Contracts) -> None:
        if kind is HandlerKind.TYPE_REFERENCE:
            missing = [c for c in contracts if not issubclass(target, c)]
            owner = target.__qualname__
        else:
            missing = [c for c in contracts if not isinstance(target, c)]
            owner = f"instance of {type(target).__qualname__}"

        if missing:
            raise RegistrationError(
                f"Hook {owner} must implement {_contract_names(missing)}"
            )

    def _resolve_callable(
        self, slot: SlotKey, entry: HandlerDescriptor
    ) -> Callable[..., Any] | None:
        if entry.kind is HandlerKind.INVOCABLE:
            return entry.handler  # type: ignore[no-any-return]

        if entry.kind is HandlerKind.TYPE_REFERENCE:
            instance = entry.target()
        else:
            instance = entry.handler

        if entry.contracts:
            missing = [c for c in entry.contracts if not isinstance(instance, c)]
            if missing:
                raise HookValidationError(
                    f"Hook instance of {type(instance).__qualname__} on slot '{slot}' "
                    f"must implement {_contract_names(missing)}"
                )

        fn = _callable_form(instance)
        if fn is None:
            if entry.contracts:
                raise HookValidationError(
                    f"Hook {type(instance).__qualname__} on slot '{slot}' implements "
                    "its contracts but is not callable and has no handle/execute method"
                )
            logger.warning(
                "hook_handler_skipped_not_callable",
                slot=str(slot),
                handler=type(instance).__qualname__,
                category="hook",
            )
        return fn

    @staticmethod
    def _describe(handler: Any) -> str:
        if isinstance(handler, str):
            return handler
        name = getattr(handler, "__qualname__", None)
        if name is None:
            name = f"<{type(handler).__qualname__} instance>"
        return str(name)


__all__ = ["HandlerDescriptor", "HandlerKind", "HookRegistry", "SlotConfig"]
