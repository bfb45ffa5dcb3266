# errors.py - Content-service exceptions with VC-{DOMAIN}-{NUMBER} codes
from typing import Optional

# ============================================================
# ERROR CODE CATALOGUE
# VC-{DOMAIN}-{NUMBER}
# Domains: AUTH, DB, VAL, SYS
# ============================================================

ERROR_CATALOGUE = {
    # Authentication & Authorisation
    "VC-AUTH-001": {"message": "Invalid or expired token", "severity": "warning", "http_status": 401},
    "VC-AUTH-002": {"message": "Insufficient permissions", "severity": "warning", "http_status": 403},

    # Content stores
    "VC-DB-001": {"message": "Content store unavailable", "severity": "critical", "http_status": 503},
    "VC-DB-002": {"message": "Record not found", "severity": "info", "http_status": 404},
    "VC-DB-003": {"message": "Slug already in use", "severity": "warning", "http_status": 409},

    # Validation
    "VC-VAL-001": {"message": "Invalid status transition", "severity": "info", "http_status": 422},

    # System
    "VC-SYS-001": {"message": "Internal server error", "severity": "critical", "http_status": 500},
}


class ContentError(Exception):
    """Base class for errors raised by the content repositories."""

    code = "VC-SYS-001"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or ERROR_CATALOGUE[self.code]["message"])

    @property
    def http_status(self) -> int:
        return ERROR_CATALOGUE[self.code]["http_status"]


class StoreUnavailableError(ContentError):
    """Neither the primary store nor the local cache accepted a write."""

    code = "VC-DB-001"


class NotFoundError(ContentError):
    code = "VC-DB-002"

    def __init__(self, entity_id: str, collection: str, store: str = "primary store and local cache"):
        self.entity_id = entity_id
        self.collection = collection
        self.store = store
        super().__init__(f"No document '{entity_id}' in {collection} ({store})")


class SlugConflictError(ContentError):
    code = "VC-DB-003"

    def __init__(self, slug: str, collection: str):
        self.slug = slug
        self.collection = collection
        super().__init__(f"Slug '{slug}' is already used in {collection}")


class InvalidTransitionError(ContentError):
    code = "VC-VAL-001"
