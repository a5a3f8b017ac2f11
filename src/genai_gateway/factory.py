"""
Gateway factory.

Decides which backends a configuration allows, builds each one
independently, and tolerates individual failures as long as at least one
backend comes up.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .adapters import ChatSDKAdapter, KeyedRESTAdapter, LegacyPredictAdapter
from .bundle import ServiceBundle
from .core.config import GatewayConfig
from .core.errors import GatewayConstructionError
from .core.interface import AbstractBackend, BackendKind
from .core.registry import capabilities_of

logger = logging.getLogger(__name__)

AdapterBuilder = Callable[[GatewayConfig], AbstractBackend]

DEFAULT_BUILDERS: Dict[BackendKind, AdapterBuilder] = {
    BackendKind.KEYED_REST: KeyedRESTAdapter,
    BackendKind.CHAT_SDK: ChatSDKAdapter,
    BackendKind.LEGACY_PREDICT: LegacyPredictAdapter,
}


def eligible_backends(config: GatewayConfig) -> List[BackendKind]:
    """
    Backend kinds the configuration allows, in construction order.

    The predict backend always accompanies the SDK backend because it is
    the only one that can generate images.
    """
    kinds = []
    if config.api_key:
        kinds.append(BackendKind.KEYED_REST)
    if config.project_id:
        kinds.append(BackendKind.CHAT_SDK)
        kinds.append(BackendKind.LEGACY_PREDICT)
    return kinds


class GatewayFactory:
    """
    Builds the service bundle from a configuration.
    """

    def __init__(
        self,
        config: GatewayConfig,
        builders: Optional[Dict[BackendKind, AdapterBuilder]] = None,
    ):
        self._config = config
        self._builders: Dict[BackendKind, AdapterBuilder] = dict(DEFAULT_BUILDERS)
        if builders:
            self._builders.update(builders)

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def register_adapter(self, kind: BackendKind, builder: AdapterBuilder) -> None:
        """
        Register the builder used for a backend kind.

        Args:
            kind: Backend kind
            builder: Callable taking the config and returning an adapter
        """
        self._builders[kind] = builder
        logger.info(f"Registered adapter builder: {kind.value}")

    async def _attempt(
        self, kind: BackendKind
    ) -> Tuple[Optional[AbstractBackend], Optional[Exception]]:
        """Build and connect one backend, capturing any failure."""
        try:
            adapter = self._builders[kind](self._config)
            await adapter.connect()
        except Exception as e:
            logger.warning(f"Failed to initialize {kind.value} backend: {e}")
            return None, e

        caps = ", ".join(sorted(c.value for c in capabilities_of(kind)))
        logger.info(f"Initialized {kind.value} backend {adapter.name} ({caps})")
        return adapter, None

    async def create_services(self) -> ServiceBundle:
        """
        Build every eligible backend.

        Returns:
            Bundle holding the backends that came up

        Raises:
            GatewayConstructionError: If no backend is usable
        """
        kinds = eligible_backends(self._config)
        if not kinds:
            raise GatewayConstructionError("no AI backends configured")

        adapters: Dict[BackendKind, AbstractBackend] = {}
        failures: Dict[BackendKind, Exception] = {}
        for kind in kinds:
            adapter, error = await self._attempt(kind)
            if adapter is not None:
                adapters[kind] = adapter
            else:
                failures[kind] = error

        if not adapters:
            detail = "; ".join(f"{k.value}: {e}" for k, e in failures.items())
            raise GatewayConstructionError(
                f"no AI backends could be initialized ({detail})",
                failures={k.value: e for k, e in failures.items()},
            )

        bundle = ServiceBundle(adapters, failures)
        logger.info(
            f"AI backends ready: {[k.value for k in bundle.available_kinds()]} "
            f"(primary: {bundle.primary_backend().value})"
        )
        return bundle


async def create_services(
    config: GatewayConfig,
    builders: Optional[Dict[BackendKind, AdapterBuilder]] = None,
) -> ServiceBundle:
    """Build a service bundle with the default factory."""
    return await GatewayFactory(config, builders).create_services()
