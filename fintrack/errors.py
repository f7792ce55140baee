from typing import Dict, Optional


class FintrackError(Exception):
    pass


class ValidationError(FintrackError):
    """Field-scoped rejection of a record or form; ``errors`` maps field -> message."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.errors)


class NotFound(FintrackError):
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} with ID {record_id} does not exist")


class InvalidAmount(ValidationError):
    """Non-positive or non-numeric amount; also carries any other field errors."""

    def __init__(self, message: str = "Please enter a valid amount greater than 0", amount=None,
                 field: str = "amount", errors: Optional[Dict[str, str]] = None):
        self.amount = amount
        self.message = message
        super().__init__({**(errors or {}), field: message})


class StorageUnavailable(FintrackError):
    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not write '{key}': {reason}")


class ExternalServiceError(FintrackError):
    """Collaborator failure; ``user_message`` is safe to show as-is."""

    def __init__(self, user_message: str, cause: Optional[BaseException] = None):
        self.user_message = user_message
        self.cause = cause
        super().__init__(user_message)
