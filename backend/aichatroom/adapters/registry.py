"""Registry mapping model identifiers to lazily constructed adapters."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping, Optional

from .base import AIAdapter
from .errors import ModelNotFoundError
from .types import Pricing

logger = logging.getLogger(__name__)

# Called with the model identifier, so one factory can serve a whole family
AdapterFactory = Callable[[str], AIAdapter]


class AdapterRegistry:
    """Maps model IDs to adapter factories and caches one adapter per ID.

    Each registry owns its own factory table and instance cache, so several
    registries can coexist (e.g. in tests). Adapters are created and
    initialized on first use; concurrent first requests for the same ID
    share a single construction.
    """

    def __init__(self, factories: Optional[Mapping[str, AdapterFactory]] = None) -> None:
        self._factories: dict[str, AdapterFactory] = dict(factories or {})
        self._instances: dict[str, AIAdapter] = {}
        # Built for pricing lookups but not yet initialized
        self._uninitialized: dict[str, AIAdapter] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        if self._factories:
            logger.info(f"AI adapters registered: {list(self._factories)}")

    def register(self, model_id: str, factory: AdapterFactory) -> None:
        """Register a factory for a model ID.

        Replacing a factory does not evict an adapter already built for the ID.
        """
        if model_id in self._factories:
            logger.warning(f"Replacing adapter factory for model: {model_id}")
        self._factories[model_id] = factory

    async def get_adapter(self, model_id: str) -> AIAdapter:
        """Return the cached adapter for ``model_id``, creating it on first use.

        Raises:
            ModelNotFoundError: If no factory is registered for ``model_id``
            AIError: If the adapter fails to initialize; nothing is cached
                and the next call tries again
        """
        adapter = self._instances.get(model_id)
        if adapter is not None:
            return adapter

        factory = self._factories.get(model_id)
        if factory is None:
            raise ModelNotFoundError(model_id, self._factories)

        lock = self._locks.setdefault(model_id, asyncio.Lock())
        async with lock:
            # Another task may have finished construction while we waited
            adapter = self._instances.get(model_id)
            if adapter is None:
                adapter = self._uninitialized.pop(model_id, None) or factory(model_id)
                await adapter.initialize()
                self._instances[model_id] = adapter
                logger.info(f"Created {adapter.provider} adapter for {model_id}")
        return adapter

    def get_pricing(self, model_id: str) -> Pricing:
        """Return the pricing for ``model_id`` without initializing anything.

        A cached adapter answers directly. Otherwise the factory builds an
        instance that is kept, uninitialized, for the first ``get_adapter``
        call; no client is created and no credential is needed.

        Raises:
            ModelNotFoundError: If no factory is registered for ``model_id``
        """
        adapter = self._instances.get(model_id) or self._uninitialized.get(model_id)
        if adapter is None:
            factory = self._factories.get(model_id)
            if factory is None:
                raise ModelNotFoundError(model_id, self._factories)
            adapter = self._uninitialized.setdefault(model_id, factory(model_id))
        return adapter.pricing

    def get_available_models(self) -> list[str]:
        """List registered model IDs, in registration order."""
        return list(self._factories)

    def has_model(self, model_id: str) -> bool:
        return model_id in self._factories

    def is_loaded(self, model_id: str) -> bool:
        """Whether an initialized adapter is cached for ``model_id``."""
        return model_id in self._instances
