"""
Exception hierarchy for the marketplace service.

Business-rule errors propagate to the caller and are rendered by the
exception handler in app.main. Store failures are converted into
TransportError at each service operation boundary via store_boundary().
"""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_RETRY_MESSAGE = "Noe gikk galt. Vennligst prøv igjen senere."


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "MARKETPLACE_ERROR",
        details: Optional[dict] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(MarketplaceError):
    """Empty or otherwise invalid input."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            error_code="VALIDATION_ERROR",
            details={"field": field} if field else None,
        )


class AccessDeniedError(MarketplaceError):
    """Caller is not a participant of the thread or not the owner."""

    status_code = 403

    def __init__(self, message: str = "Du har ikke tilgang til denne ressursen."):
        super().__init__(message, error_code="ACCESS_DENIED")


class NotFoundError(MarketplaceError):
    """Referenced company, resource or thread does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} {entity_id} not found",
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id},
        )


class NoCompanyError(MarketplaceError):
    """Authenticated user has not registered a company."""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__(
            "Du må registrere en bedrift før du kan bruke meldingsfunksjonen.",
            error_code="NO_COMPANY",
            details={"user_id": user_id},
        )


class AlreadyDisclosedError(MarketplaceError):
    """Contact information was already shared for the thread."""

    status_code = 409

    def __init__(self, thread_id: str):
        super().__init__(
            "Kontaktinformasjon er allerede delt i denne tråden.",
            error_code="ALREADY_DISCLOSED",
            details={"thread_id": thread_id},
        )


class AlreadyTakenError(MarketplaceError):
    """Resource has already been committed to a counterparty."""

    status_code = 409

    def __init__(self, resource_id: str):
        super().__init__(
            "Ressursen er allerede tatt.",
            error_code="ALREADY_TAKEN",
            details={"resource_id": resource_id},
        )


class TransportError(MarketplaceError):
    """Store or network failure, surfaced as a retry prompt."""

    status_code = 503
    retry_after = 5

    def __init__(self, message: str = DEFAULT_RETRY_MESSAGE, operation: Optional[str] = None):
        super().__init__(
            message,
            error_code="TRANSPORT_ERROR",
            details={"operation": operation} if operation else None,
        )


@contextmanager
def store_boundary(operation: str, user_message: str = DEFAULT_RETRY_MESSAGE):
    """
    Convert store failures raised inside the block into TransportError.

    Integrity errors are left alone; callers translate those into
    business-rule errors themselves.
    """
    try:
        yield
    except IntegrityError:
        raise
    except (OperationalError, PoolTimeoutError, DBAPIError) as e:
        logger.exception("[STORE] %s failed: %s", operation, e)
        raise TransportError(user_message, operation=operation) from e
