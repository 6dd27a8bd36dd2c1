from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class LookalikeError(Exception):
    """Base class of every error raised by lookalike."""


class DefinitionError(LookalikeError):
    """Raised while declaring blueprints."""


@dataclass(eq=False)
class DuplicateAttribute(DefinitionError):
    blueprint: str
    attribute: str

    def __str__(self) -> str:
        return f"Attribute already defined: {self.attribute}"


@dataclass(eq=False)
class InvalidAttribute(DefinitionError):
    attribute: str
    reason: str

    def __str__(self) -> str:
        return f"Invalid attribute {self.attribute}: {self.reason}"


@dataclass(eq=False)
class InvalidOptions(DefinitionError):
    options: set[str]
    allowed: set[str]

    def __str__(self) -> str:
        unknown = ", ".join(sorted(self.options))
        valid = ", ".join(sorted(self.allowed))
        return f"Unknown key(s): {unknown}. Valid keys are: {valid}"


@dataclass(eq=False)
class DuplicateBlueprint(DefinitionError):
    name: str

    def __str__(self) -> str:
        return f"Factory already defined: {self.name}"


@dataclass(eq=False)
class RegistryFrozen(DefinitionError):
    name: str | None = None

    def __str__(self) -> str:
        if self.name:
            return f"Registry is frozen, cannot define {self.name}"
        return "Registry is frozen"


@dataclass(eq=False)
class BlueprintSealed(DefinitionError):
    name: str

    def __str__(self) -> str:
        return f"Factory {self.name} is already registered"


@dataclass(eq=False)
class BlueprintNotFound(LookalikeError, LookupError):
    name: str

    def __str__(self) -> str:
        return f"No such factory: {self.name}"


@dataclass(eq=False)
class TargetNotFound(LookalikeError):
    blueprint: str
    target: str

    def __str__(self) -> str:
        return f"Cannot resolve class {self.target} for factory {self.blueprint}"


@dataclass(eq=False)
class UnknownAttribute(LookalikeError, LookupError):
    blueprint: str
    attribute: str

    def __str__(self) -> str:
        return f"No such attribute: {self.attribute}"


@dataclass(eq=False)
class ValidationError(LookalikeError):
    """
    Raised when an instance is refused by its storage.

    Target types and storages raise it from ``save()`` or ``storage(instance, attributes)``;
    ``create`` lets it through untouched.
    """

    instance: Any
    errors: Mapping[str, list[str]] = field(default_factory=dict)

    def __str__(self) -> str:
        messages = "; ".join(f"{key} {message}" for key, messages in self.errors.items() for message in messages)
        return f"Validation failed: {messages or type(self.instance).__name__}"


@dataclass(eq=False)
class MissingPersistence(LookalikeError):
    target: type

    def __str__(self) -> str:
        return f"Don't know how to persist {self.target.__name__}: no storage and no save()"
