from __future__ import annotations
from typing import Any, List


class EngineError(Exception):
    """Base class for all errors raised by the engine."""


class InvalidFileTypeError(EngineError):
    pass


class IOCorruptionError(EngineError):
    pass


class BackupNotFoundError(EngineError):
    pass


class CollectionNotFoundError(EngineError):
    def __init__(self, collection: str) -> None:
        super().__init__(f"Collection '{collection}' does not exist.")
        self.collection = collection


class CollectionExistsError(EngineError):
    def __init__(self, collection: str) -> None:
        super().__init__(f"Collection '{collection}' already exists.")
        self.collection = collection


class KeyNotFoundError(EngineError):
    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"Key '{key}' does not exist in collection '{collection}'.")
        self.collection = collection
        self.key = key


class NoMatchError(EngineError):
    def __init__(self, collection: str, key: str, value: Any) -> None:
        super().__init__(f"No record found in '{collection}' where '{key}' = '{value}'.")
        self.collection = collection
        self.key = key
        self.value = value


class ValidationError(EngineError):
    pass


class InvalidRecordError(ValidationError):
    pass


class InvalidSchemaError(ValidationError):
    pass


class SchemaValidationError(ValidationError):
    """
    Raised when a record does not satisfy the schema bound to its collection.
    `failures` holds one FieldFailure per offending field.
    """
    def __init__(self, collection: str, failures: List[Any]) -> None:
        details = "; ".join(str(f) for f in failures)
        super().__init__(f"Schema validation failed for collection '{collection}': {details}")
        self.collection = collection
        self.failures = list(failures)


class InvalidPatternError(EngineError):
    def __init__(self, term: str, reason: str = "") -> None:
        msg = f"Invalid search pattern: '{term}'"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.term = term
        self.reason = reason


class ConditionError(EngineError):
    def __init__(self, condition: str, reason: str = "") -> None:
        msg = f"Error in evaluating condition: '{condition}'"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.condition = condition
        self.reason = reason


class TransactionError(EngineError):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Transaction failed: {cause}")
        self.cause = cause
