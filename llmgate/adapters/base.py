"""Base provider class, per-call model configuration and shared HTTP handling."""
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from llmgate.core.config import GatewayConfig
from llmgate.core.errors import ErrorCode, GenerationError
from llmgate.core.logging import logger
from llmgate.prompt import MessagesPrompt, SimplePrompt
from llmgate.result import LLMResult

CONNECT_TIMEOUT = 60.0
USER_AGENT = "llmgate"

PromptType = Union[SimplePrompt, MessagesPrompt]
ResponseT = TypeVar("ResponseT", bound=BaseModel)


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str


class ModelConfig(BaseModel):
    """Per-call model configuration; unset fields fall back to gateway or vendor defaults."""
    model_config = ConfigDict(frozen=True)

    credentials: Optional[Credentials] = None
    base_url: Optional[str] = None
    version: Optional[str] = None
    model: Optional[str] = None
    stream: Optional[bool] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    seed: Optional[int] = None
    top_p: Optional[float] = None


def build_http_client() -> httpx.AsyncClient:
    """Shared client with a fixed connect timeout and no per-request deadline."""
    return httpx.AsyncClient(timeout=httpx.Timeout(None, connect=CONNECT_TIMEOUT))


class BaseProvider(ABC):
    """Base class for provider adapters."""

    #: Provider key, e.g. "openai"
    name: str = ""
    #: Path appended to the effective base URL
    path: str = ""

    def __init__(
        self,
        global_config: GatewayConfig,
        config: Optional[ModelConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.global_config = global_config
        self.config = config or ModelConfig()
        self.client = client if client is not None else build_http_client()

    @abstractmethod
    async def generate(self, prompt: PromptType) -> LLMResult:
        """Send the prompt to the vendor and return the normalized result."""
        pass

    # ------------------------------------------------------------------
    # Effective configuration
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        return (self.config.base_url or self.global_config.base_url).rstrip("/")

    @property
    def model(self) -> str:
        return self.config.model or self.global_config.default_model

    @property
    def api_key(self) -> str:
        if self.config.credentials is not None:
            return self.config.credentials.api_key
        return self.global_config.api_key

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{self.path}"

    def _sampling(self, field: str, default: Any) -> Any:
        value = getattr(self.config, field)
        return default if value is None else value

    def _default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
        }

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """POST a JSON body once and return the decoded JSON response."""
        logger.debug(f"{self.name} request to {url}: {payload}")
        started = time.perf_counter()
        try:
            response = await self.client.post(
                url,
                headers=headers or self._default_headers(),
                params=params,
                json=payload,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.name} API returned HTTP {e.response.status_code}: {e}")
            raise GenerationError(
                f"{self.name} API returned HTTP {e.response.status_code}",
                ErrorCode.HTTP_STATUS,
                self.name,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{self.name} API error: {e}")
            raise GenerationError(f"{self.name} request failed: {e}", ErrorCode.TRANSPORT, self.name) from e

        elapsed = time.perf_counter() - started
        logger.info(f"{self.name} responded {response.status_code} in {elapsed:.2f}s")

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{self.name} returned a non-JSON body: {e}")
            raise GenerationError(f"{self.name} response is not JSON", ErrorCode.DECODE, self.name) from e

    def _parse_response(self, model_class: Type[ResponseT], data: Any) -> ResponseT:
        try:
            return model_class.model_validate(data)
        except ValidationError as e:
            logger.error(f"{self.name} response does not match {model_class.__name__}: {e}")
            raise GenerationError(
                f"{self.name} response does not match the expected schema",
                ErrorCode.DECODE,
                self.name,
            ) from e

    async def aclose(self) -> None:
        await self.client.aclose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r}, model={self.model!r})"
