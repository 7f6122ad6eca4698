# app/domain/errors.py
"""Error taxonomy shared by repos, services and routers."""


class ShopError(Exception):
    """Base exception for all shop errors."""

    pass


class ValidationError(ShopError):
    """Malformed or missing input, or a rule on a single field."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFound(ShopError):
    """Referenced entity is absent (or its id is malformed)."""

    def __init__(self, entity: str, identifier=None):
        self.entity = entity
        self.identifier = identifier
        msg = f"{entity} not found"
        if identifier is not None:
            msg = f"{entity} not found: {identifier}"
        super().__init__(msg)


class Conflict(ShopError):
    """Uniqueness violation that a retry does not resolve."""

    pass


class InvalidTransition(ShopError):
    """Illegal order status change."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f'Cannot change order with status "{current}" to "{target}"')


class NumberGenerationExhausted(ShopError):
    """Every order number tried collided with an existing one."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Failed to generate a unique order number after {attempts} attempts"
        )


class DependencyFailure(ShopError):
    """An external collaborator (media store, notifier) failed."""

    def __init__(self, dependency: str, message: str):
        self.dependency = dependency
        super().__init__(f"{dependency}: {message}")
