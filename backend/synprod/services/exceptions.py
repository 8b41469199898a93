"""
Domain exceptions for SynProd.

Scaling errors are input-contract violations raised by the pure calculator;
product errors are raised by ProductService. Both are mapped to HTTP
responses by the exception handlers registered in synprod.main.
"""


class RecipeScalingError(ValueError):
    """Base class for recipe scaling / catalog lookup failures."""


class InvalidProductType(RecipeScalingError):
    def __init__(self, product_type):
        self.product_type = product_type
        super().__init__(f"Unknown product type: {product_type!r}")


class InvalidCapacityUnit(RecipeScalingError):
    def __init__(self, product_type, capacity_unit_key):
        self.product_type = product_type
        self.capacity_unit_key = capacity_unit_key
        super().__init__(
            f"Capacity unit {capacity_unit_key!r} is not available for product type {product_type!r}"
        )


class InvalidQuantity(RecipeScalingError):
    def __init__(self, order_quantity):
        self.order_quantity = order_quantity
        super().__init__(f"Order quantity must be a finite number >= 0 (got {order_quantity})")


# ── Product management ───────────────────────────────────────────────────────

class ProductNotFound(Exception):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found with id: {product_id}")


class ProductValidationError(Exception):
    pass


class DuplicateProduct(Exception):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Product with name '{name}' already exists")


class NotProductOwner(Exception):
    pass


# ── User management ──────────────────────────────────────────────────────────

class UserNotFound(Exception):
    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User not found with id: {user_id}")


class DuplicateEmail(Exception):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already exists: {email}")


class ProfileAccessDenied(Exception):
    pass
