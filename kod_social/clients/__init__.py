"""External collaborators consumed by the social engine."""
from .identity import HeaderIdentityProvider, Identity, IdentityProvider, SessionIdentityProvider
from .llm import CompletionResult, GeminiClient, LLMClient, build_llm_client
from .storage import (
    InMemoryObjectStorage,
    ObjectStorage,
    SpacesObjectStorage,
    StoredObject,
    build_object_storage,
)

__all__ = [
    "Identity",
    "IdentityProvider",
    "SessionIdentityProvider",
    "HeaderIdentityProvider",
    "CompletionResult",
    "LLMClient",
    "GeminiClient",
    "build_llm_client",
    "ObjectStorage",
    "StoredObject",
    "InMemoryObjectStorage",
    "SpacesObjectStorage",
    "build_object_storage",
]
