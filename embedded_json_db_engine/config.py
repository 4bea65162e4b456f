from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Any, Dict

from .errors import InvalidFileTypeError, ValidationError

JSON_EXTENSIONS = (".json",)


@dataclass
class DatabaseConfig:
    file_path: str
    auto_commit: bool = True
    verbose: bool = False
    default_values: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    pretty: bool = False
    indent: int = 2

    def __post_init__(self) -> None:
        self.file_path = os.fspath(self.file_path)
        ext = os.path.splitext(self.file_path)[1].lower()
        if ext not in JSON_EXTENSIONS:
            raise InvalidFileTypeError(f"The file '{self.file_path}' is not of JSON format.")
        if self.default_values is None:
            self.default_values = {}
        if not isinstance(self.default_values, dict):
            raise ValidationError("default_values must map collection names to field maps")
        for name, defaults in self.default_values.items():
            if not isinstance(defaults, dict):
                raise ValidationError(f"default_values for collection '{name}' must be a field map")
