# app/core/errors.py
"""
Domain error taxonomy.

Services raise these; the HTTP layer maps them to a JSON body via the
handler registered in `app.main`. Each error carries:

  - status_code: HTTP status the router should answer with
  - code:        stable machine-readable identifier
  - message:     human-readable reason
"""

from typing import Any


class AppError(Exception):
    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str = "Server Error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(AppError):
    status_code = 422
    code = "validation_error"

    def __init__(self, message: str = "Validation Error", errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class BadRequestError(AppError):
    status_code = 400
    code = "bad_request"

    def __init__(self, message: str = "Bad Request"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Checkout / order business-rule violations
# ---------------------------------------------------------------------------


class EmptyCart(BadRequestError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty")


class ProductUnavailable(BadRequestError):
    code = "product_unavailable"

    def __init__(self, title: str):
        super().__init__(f"Product {title} is no longer available")
        self.title = title


class InsufficientStock(BadRequestError):
    code = "insufficient_stock"

    def __init__(self, title: str, available: int):
        super().__init__(f"Insufficient stock for {title}. Available: {available}")
        self.title = title
        self.available = available


class CouponNotFound(BadRequestError):
    code = "coupon_not_found"

    def __init__(self, message: str = "Invalid or expired coupon code"):
        super().__init__(message)


class CouponExhausted(BadRequestError):
    code = "coupon_exhausted"

    def __init__(self, message: str = "Coupon usage limit reached"):
        super().__init__(message)


class MinPurchaseNotMet(BadRequestError):
    code = "min_purchase_not_met"

    def __init__(self, min_amount: float):
        super().__init__(
            f"Minimum purchase amount of {min_amount:g} required for this coupon"
        )
        self.min_amount = min_amount


class AlreadyCancelled(BadRequestError):
    code = "already_cancelled"

    def __init__(self):
        super().__init__("Order is already cancelled")


class NotCancellable(BadRequestError):
    code = "not_cancellable"

    def __init__(self, order_status: str):
        super().__init__(
            "Cannot cancel order that has been shipped or delivered"
        )
        self.order_status = order_status


class PartialCheckoutFailure(AppError):
    """
    The order row exists but a later checkout step failed.

    Needs manual reconciliation: nothing is retried or rolled back
    automatically once the order has been written.
    """

    status_code = 500
    code = "partial_checkout_failure"

    def __init__(self, order_id, completed_steps: list[str], failed_step: str):
        super().__init__(
            f"Checkout for order {order_id} stopped at '{failed_step}'; "
            "manual reconciliation required"
        )
        self.order_id = order_id
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["order_id"] = str(self.order_id)
        body["completed_steps"] = self.completed_steps
        body["failed_step"] = self.failed_step
        return body
