"""Init file for AI services."""

from .conversation import Message, SessionConversation
from .draft import AccumulatedDraft, fold_extractions, is_ready_to_save
from .extraction_client import SessionExtractionClient
from .review import build_session_form, commit_draft


__all__ = [
    "AccumulatedDraft",
    "Message",
    "SessionConversation",
    "SessionExtractionClient",
    "build_session_form",
    "commit_draft",
    "fold_extractions",
    "is_ready_to_save",
]
