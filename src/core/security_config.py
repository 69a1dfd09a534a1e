"""Log redaction configuration for the session extraction library.

This module centralizes the keys that must never appear verbatim in logs:
- Credentials for the model providers
- Free text the user typed or dictated (it may contain personal details)
"""

# Keys redacted by StructuredLogger regardless of nesting depth
SENSITIVE_KEYS: set[str] = {
    # Credentials
    "api_key",
    "secret",
    "token",
    "authorization",
    "password",
    "bearer",
    # User supplied free text
    "utterance",
    "content",
    "prompt",
    "additional_notes",
    "session_goal",
    # Personal Identifiable Information
    "email",
    "phone",
}


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted.

    Args:
        key: The key name to check

    Returns:
        True if the key should be redacted, False otherwise
    """
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
