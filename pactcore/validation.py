"""Input checks applied before any store mutation.

Each rule is a pydantic ``TypeAdapter`` over a constrained ``str``; failures
are re-raised as :class:`pactcore.errors.ValidationError`.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from pactcore.errors import ValidationError

MAX_LENGTH = 255
MAX_ENVIRONMENT_LENGTH = 100
SHA_LENGTH = 64


def _string(pattern: str | None = None, max_length: int = MAX_LENGTH, min_length: int = 1) -> TypeAdapter:
    return TypeAdapter(
        Annotated[str, StringConstraints(min_length=min_length, max_length=max_length, pattern=pattern)]
    )


NAME = _string(r"^[a-zA-Z0-9._-]+$")
BRANCH = _string(r"^[a-zA-Z0-9._/-]+$")
ENVIRONMENT = _string(r"^[a-zA-Z0-9_-]+$", max_length=MAX_ENVIRONMENT_LENGTH)
VERSION = _string()
SHA = _string(r"^[a-fA-F0-9]+$", max_length=SHA_LENGTH, min_length=SHA_LENGTH)

NAME_HINT = "can only contain letters, numbers, dots, hyphens, and underscores"
BRANCH_HINT = "can only contain letters, numbers, dots, hyphens, underscores, and slashes"
ENVIRONMENT_HINT = "can only contain letters, numbers, hyphens, and underscores"


def _check(adapter: TypeAdapter, value: Any, label: str, hint: str = "") -> str:
    try:
        return adapter.validate_python(value, strict=True)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        kind = error["type"]
        if kind == "string_too_long":
            message = f"exceeds {error['ctx']['max_length']} characters"
        elif kind == "string_pattern_mismatch":
            message = hint
        elif kind == "string_too_short":
            message = f"{label} cannot be empty"
        else:
            message = f"{label} must be a string"
        raise ValidationError(f"Invalid {label}: {message}") from None


def validate_name(value: Any, label: str = "name") -> str:
    return _check(NAME, value, label, NAME_HINT)


def validate_tag(value: Any) -> str:
    return validate_name(value, "tag")


def validate_version(value: Any) -> str:
    return _check(VERSION, value, "version")


def validate_branch(value: Any) -> str:
    return _check(BRANCH, value, "branch", BRANCH_HINT)


def validate_environment(value: Any) -> str:
    return _check(ENVIRONMENT, value, "environment", ENVIRONMENT_HINT)


def validate_sha(value: Any) -> str:
    try:
        return SHA.validate_python(value, strict=True).lower()
    except PydanticValidationError:
        raise ValidationError("Invalid sha: must be exactly 64 hexadecimal characters") from None


def validate_pact_document(content: Any) -> dict:
    """Structural presence check only: consumer, provider and interactions."""
    if not isinstance(content, dict):
        raise ValidationError("Pact must be a JSON object")
    missing = [key for key in ("consumer", "provider", "interactions") if content.get(key) is None]
    if missing:
        raise ValidationError("Pact must contain consumer, provider, and interactions")
    if not isinstance(content["interactions"], list):
        raise ValidationError("Pact interactions must be a list")
    return content
