from .llm_gateway import (
    AuthFailed,
    GatewayTimeout,
    GenerationOptions,
    LLMGateway,
    LLMGatewayError,
    RateLimited,
    SchemaMismatch,
    UnknownGatewayError,
    UsageMetadata,
)
from .notifications import CollectingErrorNotifier, ErrorNotifier, LoggingErrorNotifier
from .openai_gateway import OpenAIStructuredGateway

__all__ = [
    "LLMGateway",
    "GenerationOptions",
    "UsageMetadata",
    "LLMGatewayError",
    "SchemaMismatch",
    "RateLimited",
    "AuthFailed",
    "GatewayTimeout",
    "UnknownGatewayError",
    "OpenAIStructuredGateway",
    "ErrorNotifier",
    "LoggingErrorNotifier",
    "CollectingErrorNotifier",
]
