import logging

from .aliases import Alias, Aliases
from .bases import (
    Association,
    Attribute,
    AttributeResolutionContext,
    Attributes,
    Blueprint,
    BlueprintDSL,
    Deferred,
    MaybeOverrides,
    Name,
    Persist,
    Registry,
    Static,
    Strategy,
)
from .errors import (
    BlueprintNotFound,
    BlueprintSealed,
    DefinitionError,
    DuplicateAttribute,
    DuplicateBlueprint,
    InvalidAttribute,
    InvalidOptions,
    LookalikeError,
    MissingPersistence,
    RegistryFrozen,
    TargetNotFound,
    UnknownAttribute,
    ValidationError,
)
from .types import Context
from .values import Computed, Cycle, Sequence

__all__ = [
    "alias",
    "attributes_for",
    "blueprint",
    "build_many",
    "build",
    "create_many",
    "create",
    "define",
    "freeze",
    "lookup",
    "registry",
    "Alias",
    "Aliases",
    "Association",
    "Attribute",
    "AttributeResolutionContext",
    "Attributes",
    "Blueprint",
    "BlueprintDSL",
    "BlueprintNotFound",
    "BlueprintSealed",
    "Computed",
    "Context",
    "Cycle",
    "Deferred",
    "DefinitionError",
    "DuplicateAttribute",
    "DuplicateBlueprint",
    "InvalidAttribute",
    "InvalidOptions",
    "LookalikeError",
    "MaybeOverrides",
    "MissingPersistence",
    "Name",
    "Persist",
    "Registry",
    "RegistryFrozen",
    "Sequence",
    "Static",
    "Strategy",
    "TargetNotFound",
    "UnknownAttribute",
    "ValidationError",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())

registry: Registry = Registry()
"""Registry used by the module level functions."""

alias = registry.alias
attributes_for = registry.attributes_for
blueprint = registry.blueprint
build = registry.build
build_many = registry.build_many
create = registry.create
create_many = registry.create_many
define = registry.define
freeze = registry.freeze
lookup = registry.lookup
