from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Opaque failure codes attached to factory and generation errors."""
    UNKNOWN_PROVIDER = 1
    MISSING_GATEWAY = 2
    REQUEST_BUILD = 10
    TRANSPORT = 11
    HTTP_STATUS = 12
    DECODE = 13
    UNSUPPORTED_PROMPT = 14
    TOOL_ARGUMENTS = 15


class GatewayError(Exception):
    """Base exception class for the llmgate package."""
    pass


class ConfigError(GatewayError):
    """Raised when the gateway configuration file cannot be loaded."""
    pass


class FactoryError(GatewayError):
    """Raised when a provider key cannot be resolved to an adapter."""

    def __init__(self, message: str, code: ErrorCode, key: str):
        super().__init__(message)
        self.code = code
        self.key = key


class GenerationError(GatewayError):
    """Raised when a single generate call fails outright."""

    def __init__(self, message: str, code: ErrorCode, provider: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.provider = provider


class ToolArgumentError(GenerationError):
    """Raised when a vendor tool call carries arguments that are not valid JSON."""

    def __init__(self, message: str, raw_arguments: str, provider: Optional[str] = None):
        super().__init__(message, ErrorCode.TOOL_ARGUMENTS, provider)
        self.raw_arguments = raw_arguments
