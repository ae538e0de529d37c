"""
Domain exceptions.

Raised below the use-case layer and translated by use cases into
Result errors carrying the matching error code.
"""


class DomainError(Exception):
    code = "DOMAIN_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidStateTransitionError(DomainError):
    """Requested lifecycle transition is not allowed from the current state"""

    code = "INVALID_STATE_TRANSITION"


class PaymentGatewayError(DomainError):
    """Payment gateway did not create the payment"""

    code = "PAYMENT_GATEWAY_ERROR"


class PaymentGatewayUnavailableError(PaymentGatewayError):
    """Payment gateway could not be reached (transient)"""

    code = "PAYMENT_GATEWAY_UNAVAILABLE"


class PaymentRejectedError(PaymentGatewayError):
    """Payment gateway refused the payment request (not retryable)"""

    code = "PAYMENT_REJECTED"


class PersistenceConflictError(DomainError):
    """Row was modified concurrently (optimistic version check failed)"""

    code = "PERSISTENCE_CONFLICT"


class InvalidSignatureError(DomainError):
    """Gateway notification failed signature verification"""

    code = "INVALID_SIGNATURE"


class UsageLimitReachedError(DomainError):
    """Monthly service request allowance of the tier is used up"""

    code = "USAGE_LIMIT_REACHED"
