"""Error taxonomy shared by the store, the services and the HTTP layer."""
from __future__ import annotations


class SocialError(Exception):
    """Base class for every failure surfaced to callers."""

    code = "social_error"
    default_message = "Operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# Validation: detected locally before any write.
class ValidationFailure(SocialError):
    code = "validation_failed"
    default_message = "Invalid input"


class EmptyContent(ValidationFailure):
    code = "empty_content"
    default_message = "Post content cannot be empty"


class EmptyMessage(ValidationFailure):
    code = "empty_message"
    default_message = "Message cannot be empty"


class InvalidScore(ValidationFailure):
    code = "invalid_score"
    default_message = "Score must be an integer between 1 and 5"


class SelfRating(ValidationFailure):
    code = "self_rating"
    default_message = "You cannot rate your own profile"


class InvalidOperation(ValidationFailure):
    code = "invalid_operation"
    default_message = "Operation not allowed"


class InvalidVisibility(ValidationFailure):
    code = "invalid_visibility"
    default_message = "Visibility must be 'public' or 'private'"


# Conflicts: detected through a pre-write existence query.
class ConflictError(SocialError):
    code = "conflict"
    default_message = "Conflicting record exists"


class DuplicateRequest(ConflictError):
    code = "duplicate_request"
    default_message = "A pending friend request already exists"


class AlreadyFriends(ConflictError):
    code = "already_friends"
    default_message = "Already friends"


class DuplicateRating(ConflictError):
    code = "duplicate_rating"
    default_message = "You have already rated this user"


class NotFoundError(SocialError):
    code = "not_found"
    default_message = "Not found"


class DocumentNotFound(NotFoundError):
    code = "document_not_found"
    default_message = "Document not found"


class RequestNotFound(NotFoundError):
    code = "request_not_found"
    default_message = "Friend request not found"


class ProfileNotFound(NotFoundError):
    code = "profile_not_found"
    default_message = "Profile not found"


class PermissionDenied(SocialError):
    code = "permission_denied"
    default_message = "Not allowed to modify this record"


# Collaborator failures: propagated from the store, identity or storage.
class CollaboratorError(SocialError):
    code = "collaborator_failed"
    default_message = "External service failed"


class StoreUnavailable(CollaboratorError):
    code = "store_unavailable"
    default_message = "Document store unavailable"


class SubscriptionError(CollaboratorError):
    code = "subscription_failed"
    default_message = "Live subscription failed"


class UploadFailed(CollaboratorError):
    code = "upload_failed"
    default_message = "Upload failed"


class StorageConfigurationError(CollaboratorError):
    code = "storage_misconfigured"
    default_message = "Object storage is not configured"


class BioGenerationFailed(CollaboratorError):
    code = "bio_generation_failed"
    default_message = "Could not generate a bio"


class DocumentValidationError(SocialError):
    """Raised when a stored document cannot be read back as its record type."""

    code = "invalid_document"
    default_message = "Stored document is malformed"


__all__ = [
    "SocialError",
    "ValidationFailure",
    "EmptyContent",
    "EmptyMessage",
    "InvalidScore",
    "SelfRating",
    "InvalidOperation",
    "InvalidVisibility",
    "ConflictError",
    "DuplicateRequest",
    "AlreadyFriends",
    "DuplicateRating",
    "NotFoundError",
    "DocumentNotFound",
    "RequestNotFound",
    "ProfileNotFound",
    "PermissionDenied",
    "CollaboratorError",
    "StoreUnavailable",
    "SubscriptionError",
    "UploadFailed",
    "StorageConfigurationError",
    "BioGenerationFailed",
    "DocumentValidationError",
]
