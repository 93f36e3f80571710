"""
Field validation for registration and login input.

A rule is any callable taking the raw field value and returning the accepted
value, raising ``ValueError`` with a human-readable message on rejection. A
field absent from the input is passed as ``MISSING``; a rule that returns
``MISSING`` leaves the field out of the accepted data.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Union
from pydantic import TypeAdapter, ValidationError


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

Rule = Callable[[Any], Any]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class ValidationResult:
    """Outcome of validating an input mapping."""
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def passed(cls, data: Optional[Mapping[str, Any]] = None) -> "ValidationResult":
        return cls(success=True, data=dict(data or {}))

    @classmethod
    def failed(cls, errors: Mapping[str, str]) -> "ValidationResult":
        return cls(success=False, errors=dict(errors))

    @property
    def first_error(self) -> Optional[str]:
        return next(iter(self.errors.values()), None)


CustomValidator = Callable[
    [Mapping[str, Any]],
    Union[ValidationResult, Awaitable[ValidationResult]],
]


def _require(value: Any) -> Any:
    if value is MISSING or value is None:
        raise ValueError("Required")
    return value


def _require_str(value: Any) -> str:
    value = _require(value)
    if not isinstance(value, str):
        raise ValueError("Expected string")
    return value


def _require_number(value: Any) -> Union[int, float]:
    value = _require(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Expected number")
    return value


def is_email(message: str = "Invalid email format") -> Rule:
    """Accept a syntactically valid email address."""
    def rule(value: Any) -> str:
        value = _require_str(value)
        if not EMAIL_PATTERN.match(value):
            raise ValueError(message)
        return value
    return rule


def min_length(length: int, message: Optional[str] = None) -> Rule:
    message = message or f"Must be at least {length} characters"

    def rule(value: Any) -> str:
        value = _require_str(value)
        if len(value) < length:
            raise ValueError(message)
        return value
    return rule


def max_length(length: int, message: Optional[str] = None) -> Rule:
    message = message or f"Must be at most {length} characters"

    def rule(value: Any) -> str:
        value = _require_str(value)
        if len(value) > length:
            raise ValueError(message)
        return value
    return rule


def min_value(minimum: Union[int, float], message: Optional[str] = None) -> Rule:
    message = message or f"Must be at least {minimum}"

    def rule(value: Any) -> Union[int, float]:
        value = _require_number(value)
        if value < minimum:
            raise ValueError(message)
        return value
    return rule


def max_value(maximum: Union[int, float], message: Optional[str] = None) -> Rule:
    message = message or f"Must be at most {maximum}"

    def rule(value: Any) -> Union[int, float]:
        value = _require_number(value)
        if value > maximum:
            raise ValueError(message)
        return value
    return rule


def matches(pattern: str, message: Optional[str] = None) -> Rule:
    """Accept strings containing a match for ``pattern``."""
    compiled = re.compile(pattern)
    message = message or f"Must match {pattern}"

    def rule(value: Any) -> str:
        value = _require_str(value)
        if not compiled.search(value):
            raise ValueError(message)
        return value
    return rule


def one_of(choices: Iterable[Any], message: Optional[str] = None) -> Rule:
    allowed = list(choices)
    message = message or f"Must be one of: {', '.join(map(str, allowed))}"

    def rule(value: Any) -> Any:
        value = _require(value)
        if value not in allowed:
            raise ValueError(message)
        return value
    return rule


def chain(*rules: Rule) -> Rule:
    """Apply rules in order, feeding each the previous accepted value."""
    def rule(value: Any) -> Any:
        for step in rules:
            value = step(value)
        return value
    return rule


def optional(inner: Rule) -> Rule:
    """Skip ``inner`` when the field is absent or null."""
    def rule(value: Any) -> Any:
        if value is MISSING or value is None:
            return MISSING
        return inner(value)
    return rule


def default(fallback: Any, inner: Optional[Rule] = None) -> Rule:
    """Substitute ``fallback`` for an absent field, then apply ``inner``."""
    def rule(value: Any) -> Any:
        if value is MISSING or value is None:
            value = fallback
        return inner(value) if inner else value
    return rule


def from_type(annotation: Any, message: Optional[str] = None) -> Rule:
    """
    Build a rule from any pydantic-compatible type annotation.

    Example:
        from_type(Annotated[int, Field(ge=13)], "You must be at least 13")
    """
    adapter = TypeAdapter(annotation)

    def rule(value: Any) -> Any:
        if value is MISSING:
            raise ValueError("Required")
        try:
            return adapter.validate_python(value)
        except ValidationError as e:
            if message:
                raise ValueError(message) from e
            raise ValueError(e.errors()[0]["msg"]) from e
    return rule


def validate(data: Mapping[str, Any], rules: Mapping[str, Rule]) -> ValidationResult:
    """
    Validate ``data`` against ``rules``.

    Every declared field is checked (errors are collected, not short-circuited).
    Keys without a rule are copied through unchanged.
    """
    accepted: Dict[str, Any] = {k: v for k, v in data.items() if k not in rules}
    errors: Dict[str, str] = {}

    for name, rule in rules.items():
        try:
            value = rule(data.get(name, MISSING))
        except (ValueError, TypeError) as e:
            errors[name] = str(e) or "Invalid value"
            continue
        if value is not MISSING:
            accepted[name] = value

    if errors:
        return ValidationResult.failed(errors)
    return ValidationResult.passed(accepted)


DEFAULT_EMAIL_RULE = is_email("Invalid email format")
DEFAULT_PASSWORD_RULE = min_length(6, "Password must be at least 6 characters")

LOGIN_RULES: Mapping[str, Rule] = MappingProxyType({
    "email": is_email("Invalid email format"),
    "password": min_length(1, "Password is required"),
})


@dataclass(frozen=True)
class ValidationConfig:
    """Per-engine overrides for registration validation."""
    email: Optional[Rule] = None
    password: Optional[Rule] = None
    fields: Mapping[str, Rule] = field(default_factory=dict)
    custom_validator: Optional[CustomValidator] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def registration_rules(self) -> Dict[str, Rule]:
        """Defaults merged with overrides; an override replaces the whole rule."""
        rules: Dict[str, Rule] = {
            "email": self.email or DEFAULT_EMAIL_RULE,
            "password": self.password or DEFAULT_PASSWORD_RULE,
        }
        rules.update(self.fields)
        return rules
