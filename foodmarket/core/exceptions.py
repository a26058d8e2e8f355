from __future__ import annotations

from typing import Iterable

from fastapi import status


class OrderCoreError(Exception):
    """Erro de domínio com o status HTTP que a camada de API deve devolver."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"error": self.message}


class ValidationError(OrderCoreError):
    """Entrada malformada. Carrega todas as violações de uma vez."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: str | Iterable[str]):
        super().__init__("Validation failed")
        if isinstance(errors, str):
            self.errors = [errors]
        else:
            self.errors = list(errors)

    def to_payload(self) -> dict:
        return {"error": self.message, "errors": self.errors}


class NotFoundError(OrderCoreError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(OrderCoreError):
    status_code = status.HTTP_409_CONFLICT


class AuthorizationError(OrderCoreError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)
