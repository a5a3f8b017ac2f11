"""
Capability registry.

A static, immutable table describing which operations each backend kind
implements. The factory uses it to decide what to build and the gateway
uses it to decide where to route a call.
"""

from types import MappingProxyType
from typing import FrozenSet, List, Mapping

from .interface import BackendKind, Capability


CAPABILITY_TABLE: Mapping[BackendKind, FrozenSet[Capability]] = MappingProxyType({
    BackendKind.KEYED_REST: frozenset({
        Capability.TEXT_ASK,
        Capability.IMAGE_EXTRACT,
    }),
    BackendKind.CHAT_SDK: frozenset({
        Capability.TEXT_ASK,
        Capability.IMAGE_EXTRACT,
    }),
    BackendKind.LEGACY_PREDICT: frozenset({
        Capability.TEXT_ASK,
        Capability.IMAGE_GENERATE,
    }),
})

# Kinds whose adapters hold a closable network handle
OWNS_RESOURCES: FrozenSet[BackendKind] = frozenset({
    BackendKind.CHAT_SDK,
    BackendKind.LEGACY_PREDICT,
})

# Advertised "primary" backend, display only
PRIMARY_PRIORITY = (
    BackendKind.CHAT_SDK,
    BackendKind.KEYED_REST,
    BackendKind.LEGACY_PREDICT,
)


def capabilities_of(kind: BackendKind) -> FrozenSet[Capability]:
    """Capabilities implemented by a backend kind."""
    return CAPABILITY_TABLE.get(kind, frozenset())


def supports(kind: BackendKind, capability: Capability) -> bool:
    """Check whether a backend kind implements a capability."""
    return capability in capabilities_of(kind)


def owns_resources(kind: BackendKind) -> bool:
    return kind in OWNS_RESOURCES


def backends_for(capability: Capability) -> List[BackendKind]:
    """
    Backend kinds able to serve a capability.

    Args:
        capability: Required capability

    Returns:
        Kinds in table order
    """
    return [kind for kind, caps in CAPABILITY_TABLE.items() if capability in caps]
