"""
Service bundle: the constructed adapters plus availability flags.

Built once by the factory and read-only afterwards, except for close().
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from .core.interface import AbstractBackend, BackendKind
from .core.registry import PRIMARY_PRIORITY

logger = logging.getLogger(__name__)


class ServiceBundle:
    """
    Set of ready-to-use backend adapters, at most one per kind.

    Safe for concurrent reads. close() must be called once, after in-flight
    calls have finished or been cancelled.
    """

    def __init__(
        self,
        adapters: Mapping[BackendKind, AbstractBackend],
        failures: Optional[Mapping[BackendKind, Exception]] = None,
    ):
        for kind, adapter in adapters.items():
            if adapter.kind is not kind:
                raise ValueError(f"Adapter {adapter!r} registered under {kind.value}")

        self._adapters: Mapping[BackendKind, AbstractBackend] = MappingProxyType(dict(adapters))
        self._failures: Mapping[BackendKind, Exception] = MappingProxyType(dict(failures or {}))
        self._closed = False

    @property
    def adapters(self) -> Mapping[BackendKind, AbstractBackend]:
        return self._adapters

    @property
    def failures(self) -> Mapping[BackendKind, Exception]:
        """Construction failures that were tolerated."""
        return self._failures

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, kind: BackendKind) -> Optional[AbstractBackend]:
        return self._adapters.get(kind)

    def has(self, kind: BackendKind) -> bool:
        return kind in self._adapters

    @property
    def has_chat_sdk(self) -> bool:
        return self.has(BackendKind.CHAT_SDK)

    @property
    def has_keyed_rest(self) -> bool:
        return self.has(BackendKind.KEYED_REST)

    @property
    def has_legacy_predict(self) -> bool:
        return self.has(BackendKind.LEGACY_PREDICT)

    def available_kinds(self) -> List[BackendKind]:
        return [kind for kind in PRIMARY_PRIORITY if kind in self._adapters]

    def primary_backend(self) -> Optional[BackendKind]:
        """
        Backend advertised as primary, for display only.

        Priority: CHAT_SDK > KEYED_REST > LEGACY_PREDICT.
        """
        for kind in PRIMARY_PRIORITY:
            if kind in self._adapters:
                return kind
        return None

    def describe(self) -> List[Dict[str, object]]:
        """
        List the bundled adapters.

        Returns:
            List of adapter info dicts
        """
        return [
            {
                "name": adapter.name,
                "kind": kind.value,
                "capabilities": sorted(c.value for c in adapter.capabilities),
                "is_connected": adapter.is_connected,
                "is_primary": kind is self.primary_backend(),
            }
            for kind, adapter in self._adapters.items()
        ]

    async def close(self) -> None:
        """
        Close every adapter that owns a network handle.

        Keeps going after a failure and raises the first error once all
        adapters have been attempted.
        """
        if self._closed:
            logger.warning("Service bundle already closed")
            return
        self._closed = True

        first_error: Optional[Exception] = None
        for kind in PRIMARY_PRIORITY:
            adapter = self._adapters.get(kind)
            if adapter is None or not adapter.owns_resources:
                continue
            try:
                await adapter.close()
            except Exception as e:
                logger.error(f"Failed to close backend {adapter.name}: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error
