from .database import Database
from .config import DatabaseConfig
from .query import Condition, evaluate
from .schema import Schema, FieldFailure
from .errors import (
    EngineError,
    InvalidFileTypeError,
    IOCorruptionError,
    BackupNotFoundError,
    CollectionNotFoundError,
    CollectionExistsError,
    KeyNotFoundError,
    NoMatchError,
    ValidationError,
    InvalidRecordError,
    InvalidSchemaError,
    SchemaValidationError,
    ConditionError,
    InvalidPatternError,
    TransactionError,
)

__all__ = [
    "Database",
    "DatabaseConfig",
    "Condition",
    "evaluate",
    "Schema",
    "FieldFailure",
    "EngineError",
    "InvalidFileTypeError",
    "IOCorruptionError",
    "BackupNotFoundError",
    "CollectionNotFoundError",
    "CollectionExistsError",
    "KeyNotFoundError",
    "NoMatchError",
    "ValidationError",
    "InvalidRecordError",
    "InvalidSchemaError",
    "SchemaValidationError",
    "ConditionError",
    "InvalidPatternError",
    "TransactionError",
]
