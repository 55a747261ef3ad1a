"""Error types shared by the store, the coordinator and the command surface."""

from typing import Any, Optional


class TabHoarderError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(TabHoarderError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("validation_error", message, details)


class NotFoundError(TabHoarderError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("not_found", message, details)


class StoreIOError(TabHoarderError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("store_io_error", message, details)


class InventoryIOError(TabHoarderError):
    def __init__(self, message: str, code: str = "inventory_io_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class TabNotFoundError(InventoryIOError):
    """The host no longer has the tab; removal callers treat this as done."""

    def __init__(self, tab_id: object):
        super().__init__(f"tab {tab_id} is not open", code="tab_not_found", details={"tabId": tab_id})
