from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from .errors import InvalidSchemaError, SchemaValidationError


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_integer(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    return isinstance(v, int) or (isinstance(v, float) and v.is_integer())


# Type tags accepted as rules
TYPE_TAGS: Dict[str, Callable[[Any], bool]] = {
    "numeric": _is_number,
    "number": _is_number,
    "integer": _is_integer,
    "int": _is_integer,
    "character": lambda v: isinstance(v, str),
    "string": lambda v: isinstance(v, str),
    "str": lambda v: isinstance(v, str),
    "logical": lambda v: isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "bool": lambda v: isinstance(v, bool),
    "list": lambda v: isinstance(v, list),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
    "map": lambda v: isinstance(v, dict),
}


@dataclass(frozen=True)
class FieldFailure:
    field: str
    kind: str  # "missing" | "type" | "predicate"
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class Schema:
    """
    Per-collection validation rules: field name -> rule.

    A rule is one of
      - a type tag from TYPE_TAGS ("numeric", "character", ...),
      - a Python type (str, int, float, bool, list, dict),
      - a callable predicate taking the value and returning a truthy result,
      - None: the field is optional and accepted without a check.
    Fields with a non-None rule are required. Fields not named are unrestricted.
    """
    def __init__(self, rules: Mapping[str, Any]) -> None:
        if not isinstance(rules, Mapping):
            raise InvalidSchemaError("schema must be a mapping of field name to rule")
        self._rules: Dict[str, Any] = {}
        self._checks: Dict[str, Optional[Callable[[Any], Any]]] = {}
        for name, rule in rules.items():
            if not isinstance(name, str) or not name:
                raise InvalidSchemaError(f"schema field names must be non-empty strings, got {name!r}")
            self._rules[name] = rule
            self._checks[name] = self._compile_rule(name, rule)

    @staticmethod
    def _compile_rule(name: str, rule: Any) -> Optional[Callable[[Any], Any]]:
        if rule is None:
            return None
        if isinstance(rule, str):
            check = TYPE_TAGS.get(rule.lower())
            if check is None:
                raise InvalidSchemaError(f"unknown type tag {rule!r} for field '{name}'")
            return check
        if isinstance(rule, type):
            if rule is int:
                return _is_integer
            if rule is float:
                return _is_number
            if rule is bool:
                return lambda v: isinstance(v, bool)
            return lambda v: isinstance(v, rule)
        if callable(rule):
            return rule
        raise InvalidSchemaError(f"rule for field '{name}' must be a type tag, a type, a callable or None")

    @property
    def rules(self) -> Dict[str, Any]:
        return dict(self._rules)

    def check(self, record: Mapping[str, Any]) -> List[FieldFailure]:
        failures: List[FieldFailure] = []
        for name, check in self._checks.items():
            if name not in record:
                if check is not None:
                    failures.append(FieldFailure(name, "missing", "required field is missing"))
                continue
            if check is None:
                continue
            value = record[name]
            rule = self._rules[name]
            if isinstance(rule, (str, type)):
                if not check(value):
                    failures.append(FieldFailure(name, "type", f"expected {self._describe(rule)}, got {value!r}"))
                continue
            try:
                ok = bool(check(value))
            except Exception as e:
                failures.append(FieldFailure(name, "predicate", f"predicate raised {type(e).__name__}: {e}"))
                continue
            if not ok:
                failures.append(FieldFailure(name, "predicate", f"predicate rejected {value!r}"))
        return failures

    def validate(self, record: Mapping[str, Any], collection: str = "") -> None:
        failures = self.check(record)
        if failures:
            raise SchemaValidationError(collection, failures)

    @staticmethod
    def _describe(rule: Any) -> str:
        return rule if isinstance(rule, str) else rule.__name__

    def __repr__(self) -> str:
        return f"Schema({self.rules!r})"
