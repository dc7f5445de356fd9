"""Custom exceptions for the minimart application."""

class MinimartError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(MinimartError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(MinimartError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InsufficientStockError(BusinessLogicError):
    """Raised when strict stock mode refuses an operation."""
    def __init__(self, product_name, required, available):
        message = f"Insufficient stock for {product_name}: {required} required, {available} available"
        super().__init__(message, status_code=409, payload={'required': required, 'available': available})

class DuplicateBarcodeError(BusinessLogicError):
    """Raised when a new product reuses a barcode; the caller picks a resolution."""
    def __init__(self, existing):
        self.existing = existing
        message = f'Barcode {existing.barcode} already belongs to "{existing.name}"'
        super().__init__(message, status_code=409, payload={'existing': existing.to_dict()})

class EmptyCartError(BusinessLogicError):
    """Raised when an operation needs at least one cart line."""
    def __init__(self, message="The cart is empty"):
        super().__init__(message)

class SettlementInProgressError(BusinessLogicError):
    """Raised when a settlement is triggered while another one is running."""
    def __init__(self, message="A payment is already being processed"):
        super().__init__(message, status_code=409)

class StorageQuotaError(MinimartError):
    """Raised when the local store refuses a write for lack of space."""
    def __init__(self, message="Local storage is full", payload=None):
        super().__init__(message, 507, payload)
