# bizdir/core/domain/exceptions.py
class DomainError(Exception):
    """Base class for all domain-level exceptions."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

# --- Entity Not Found Errors ---

class CategoryNotFoundError(DomainError):
    """Raised when a listing page is requested for an unknown category slug."""
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Category '{slug}' not found.")

# --- Infrastructure-facing Errors ---

class DirectoryUnavailableError(DomainError):
    """Raised by directory adapters when the backing store cannot be reached."""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        super().__init__(f"Directory call '{operation}' failed: {details}")

class SearchFailedError(DomainError):
    """
    Raised when the business search itself fails.
    This is the only failure of the listing pipeline that reaches the caller.
    """
    def __init__(self, scope: str, details: str):
        self.scope = scope
        super().__init__(f"Business search failed at scope '{scope}': {details}")
