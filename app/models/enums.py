"""Enum types for student documents."""

from enum import Enum


class DocumentType(str, Enum):
    """Closed set of supporting documents a member can upload."""
    identity_front = "identity_front"
    identity_back = "identity_back"
    proof_of_enrollment = "proof_of_enrollment"
    proof_of_address = "proof_of_address"
    other = "other"


class DocumentStatus(str, Enum):
    """Review status of an uploaded document.

    Only ``pending`` is ever assigned here; approval and rejection are
    performed by an external reviewer.
    """
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class NotificationVariant(str, Enum):
    """Presentation hint for a notification."""
    default = "default"
    destructive = "destructive"
