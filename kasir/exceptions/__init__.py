"""Custom exceptions for the Kasir POS application."""


class KasirError(Exception):
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


class BusinessLogicError(KasirError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(KasirError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ProductInUseError(BusinessLogicError):
    """Raised when deleting a product that is referenced by a sale."""
    def __init__(self, product_id, references):
        message = 'Produk tidak dapat dihapus karena sudah digunakan dalam transaksi'
        super().__init__(
            message,
            status_code=409,
            payload={'product_id': product_id, 'references': references}
        )
        self.product_id = product_id
        self.references = references


class StorageError(KasirError):
    """Base class for engine failures; the original error is kept as __cause__."""
    def __init__(self, message="Storage engine failure", payload=None):
        super().__init__(message, 500, payload)


class StatementError(StorageError):
    """A single SQL statement failed inside a transaction."""
    def __init__(self, sql, cause):
        super().__init__(f"Statement failed: {cause}")
        self.sql = sql
        self.cause = cause


class InitializationError(StorageError):
    """The engine or the schema could not be brought up."""
    def __init__(self, message="Database could not be initialized"):
        super().__init__(message)
        self.status_code = 503


class SaleError(StorageError):
    """A sale was rolled back; nothing of it was persisted."""
    def __init__(self, message="Gagal menyimpan transaksi"):
        super().__init__(message)


class SnapshotError(Exception):
    """A snapshot could not be read from or written to its store."""


class SnapshotQuotaExceeded(SnapshotError):
    """The serialized database is larger than the store allows."""
    def __init__(self, size, quota):
        super().__init__(f"Snapshot of {size} bytes exceeds quota of {quota} bytes")
        self.size = size
        self.quota = quota
