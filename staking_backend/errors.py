# staking_backend/errors.py
"""
Domain errors raised by the service layer.

Each class carries the HTTP status the API answers with; ``main.py``
turns them into ``{"error": "<message>"}`` bodies.
"""


class StakingError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(StakingError):
    status_code = 400


class NotFoundError(StakingError):
    status_code = 404


class InsufficientBalanceError(StakingError):
    status_code = 400

    def __init__(self, message: str = "Insufficient balance"):
        super().__init__(message)


class AuthError(StakingError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class DuplicateEmailError(AuthError):
    status_code = 400

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)


class StorageError(StakingError):
    status_code = 500
