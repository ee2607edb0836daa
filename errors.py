"""Error taxonomy for the catalog service."""
from typing import Any, Dict, Iterable, List


class CatalogError(Exception):
    """Base exception for all catalog errors."""


class ConfigurationError(CatalogError):
    """Raised when the service configuration is invalid."""


class ValidationFailed(CatalogError):
    """Raised when one or more field constraints are violated on write.

    Every violation is collected into ``errors`` instead of stopping at the first one.
    """

    def __init__(self, errors: List[str], message: str = "Validation error"):
        super().__init__(message)
        self.message = message
        self.errors = list(errors)


class DuplicateSkuError(ValidationFailed):
    """Raised when one or more SKUs already exist somewhere in the catalog.

    ``conflicts`` maps the offending field path to its SKU, so a payload with
    several clashing variants is reported in one error.
    """

    def __init__(self, conflicts: Dict[str, str]):
        super().__init__(
            [f"{path}: SKU '{sku}' already exists" for path, sku in conflicts.items()],
            message="Duplicate SKU",
        )
        self.skus = list(conflicts.values())


class NotFoundError(CatalogError):
    """Raised when a product id (or product + sku pair) does not resolve."""

    def __init__(self, message: str = "Product not found"):
        super().__init__(message)
        self.message = message


class MalformedIdentityError(CatalogError):
    """Raised when an identity token is not a well-formed id."""

    def __init__(self, message: str = "Invalid product ID"):
        super().__init__(message)
        self.message = message


class InfrastructureError(CatalogError):
    """Raised when the document store is unreachable or fails unexpectedly."""


def format_validation_errors(errors: Iterable[dict], skip: Iterable[str] = ("body", "query", "path")) -> List[str]:
    """Turn pydantic error dicts into ``"field.path: message"`` strings."""
    skip = set(skip)
    messages = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in skip]
        msg: Any = err.get("msg", "Invalid value")
        if isinstance(msg, str) and msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else str(msg))
    return messages
