"""Provider registry and factory.

The factory resolves a provider key (``"openai"``, ``"anthropic"``, ...) to a
live adapter. The first call for a key constructs the adapter from the
gateway configuration and caches it; every later call for the same key
returns that instance, whatever model configuration it passes.
"""
import threading
from typing import Callable, Dict, List, Optional, Type, Union

import httpx

from llmgate.adapters import (
    AnthropicProvider,
    BaseProvider,
    CerebrasProvider,
    GeminiProvider,
    GroqProvider,
    HuggingFaceProvider,
    ModelConfig,
    OpenAIProvider,
)
from llmgate.core.config import Config, GatewayConfig, GatewaysConfig, get_settings
from llmgate.core.errors import ErrorCode, FactoryError
from llmgate.core.logging import logger
from llmgate.prompt import MessagesPrompt, SimplePrompt
from llmgate.result import LLMResult

__all__ = [
    "PROVIDERS",
    "ProviderFactory",
    "ProviderRegistry",
    "create_provider",
    "gateway_name",
]

PROVIDERS: Dict[str, Type[BaseProvider]] = {
    "anthropic": AnthropicProvider,
    "cerebras": CerebrasProvider,
    "gemini": GeminiProvider,
    "groq": GroqProvider,
    "openai": OpenAIProvider,
    "huggingface": HuggingFaceProvider,
}

# Providers that can be built without a gateway entry
_CONFIG_OPTIONAL = {"huggingface"}


def gateway_name(key: str) -> str:
    """Fixed gateway configuration name for a provider key."""
    return f"{key}_gateway"


def _normalize(key: str) -> str:
    return key.strip().lower()


def create_provider(
    key: str,
    global_config: GatewayConfig,
    model_config: Optional[ModelConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> BaseProvider:
    """Create an uncached provider instance by key."""
    provider_class = PROVIDERS.get(_normalize(key))
    if not provider_class:
        raise FactoryError(f"Unknown provider type: {key}", ErrorCode.UNKNOWN_PROVIDER, key)
    return provider_class(global_config, model_config, client=client)


class ProviderRegistry:
    """Thread-safe map of provider key to adapter instance."""

    def __init__(self) -> None:
        self._items: Dict[str, BaseProvider] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[BaseProvider]:
        with self._lock:
            return self._items.get(key)

    def get_or_create(self, key: str, builder: Callable[[], BaseProvider]) -> BaseProvider:
        """Return the cached provider for key, building and registering it if absent."""
        with self._lock:
            provider = self._items.get(key)
            if provider is None:
                provider = builder()
                self._items[key] = provider
                logger.info(f"Registered provider '{key}': {provider!r}")
            return provider

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def drain(self) -> List[BaseProvider]:
        """Remove and return every registered provider."""
        with self._lock:
            providers = list(self._items.values())
            self._items.clear()
            return providers

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class ProviderFactory:
    """Resolves provider keys to cached adapter instances."""

    def __init__(
        self,
        config: Optional[Union[Config, GatewaysConfig]] = None,
        registry: Optional[ProviderRegistry] = None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ):
        if config is None:
            config = get_settings()
        self.gateways: GatewaysConfig = config.gateways if isinstance(config, Config) else config
        self.registry = registry if registry is not None else ProviderRegistry()
        self._client_factory = client_factory

    def _build(self, key: str, model_config: ModelConfig) -> BaseProvider:
        name = gateway_name(key)
        global_config = self.gateways.get(name)
        if global_config is None:
            if key not in _CONFIG_OPTIONAL:
                raise FactoryError(
                    f"No gateway configuration '{name}' for provider '{key}'",
                    ErrorCode.MISSING_GATEWAY,
                    key,
                )
            global_config = GatewayConfig(base_url="")
        client = self._client_factory() if self._client_factory else None
        return create_provider(key, global_config, model_config, client=client)

    def instance(self, key: str, model_config: Optional[ModelConfig] = None) -> BaseProvider:
        """
        Return the adapter for a provider key, creating it on first use.

        Args:
            key: Provider key, e.g. "openai"
            model_config: Per-call configuration, used only when the adapter is built

        Returns:
            The cached adapter

        Raises:
            FactoryError: for an unknown key or a missing gateway configuration
        """
        normalized = _normalize(key)
        if normalized not in PROVIDERS:
            logger.warning(f"Unknown provider requested: {key!r}")
            raise FactoryError(f"Unknown provider type: {key}", ErrorCode.UNKNOWN_PROVIDER, key)

        model_config = model_config or ModelConfig()
        return self.registry.get_or_create(normalized, lambda: self._build(normalized, model_config))

    async def generate(
        self,
        key: str,
        model_config: Optional[ModelConfig],
        prompt: Union[SimplePrompt, MessagesPrompt],
    ) -> LLMResult:
        """Resolve the provider for key and run one generation."""
        provider = self.instance(key, model_config)
        return await provider.generate(prompt)

    async def aclose(self) -> None:
        """Close the HTTP clients of every cached provider."""
        for provider in self.registry.drain():
            await provider.aclose()
