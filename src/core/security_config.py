"""Security configuration constants for the JobFinder API.

Centralizes which log keys are redacted and which error-envelope fields are
exposed per environment.
"""

# Keys are matched case-insensitively as substrings of a log field name
SENSITIVE_KEYS: set[str] = {
    # Authentication & authorization
    "password",
    "secret",
    "token",
    "authorization",
    "api_key",
    "key",
    "jwt",
    "session_id",
    "bearer",
    "cookie",
    "x-api-key",
    "auth",
    # Personal data a job seeker hands us
    "email",
    "phone",
    "address",
    "resume",
    "nric",
    "salary_expectation",
}

# Production error responses carry only these fields
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
}

# Additional diagnostics allowed outside production
DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Return the error-envelope fields allowed in `environment`."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
