"""
Domain exceptions for the order board.

Each carries the HTTP status the API layer should answer with.
"""
from typing import Any, Dict, List, Optional


class OrderBoardError(Exception):
    """Base class for order board errors."""
    http_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderBoardError):
    """Malformed or incomplete payload (400)."""
    http_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, message: str, exc) -> "ValidationError":
        """Flatten a pydantic ValidationError into [{field, message}]."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())) or "body",
                "message": err.get("msg", "invalid value"),
            }
            for err in exc.errors()
        ]
        return cls(message, errors)


class UnrecognizedVendorStatus(OrderBoardError):
    """Vendor sent a status code outside the known set (400)."""
    http_code = 400

    def __init__(self, status: Any):
        super().__init__(f"Unrecognized vendor status: {status!r}")
        self.status = status
        self.errors = [{"field": "status", "message": self.message}]


class OrderNotFound(OrderBoardError):
    """No order for the given purchase id (404)."""
    http_code = 404

    def __init__(self, purchase_id: str):
        super().__init__(f"Order {purchase_id} not found")
        self.purchase_id = purchase_id


class PersistenceMirrorError(OrderBoardError):
    """External table unreachable or rejected the write (502). Never fatal for ingest."""
    http_code = 502


class BroadcastWriteError(OrderBoardError):
    """A single subscriber could not take an event. Isolated inside the hub."""
    http_code = 500
