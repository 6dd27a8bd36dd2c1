from __future__ import annotations

import enum
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import (
    Annotated,
    Any,
    Callable,
    Generic,
    Protocol,
    Self,
    TypeAlias,
    TypeVar,
)

from typing_extensions import Doc  # type: ignore[attr-defined]

from .aliases import Aliases
from .errors import (
    BlueprintNotFound,
    BlueprintSealed,
    DuplicateAttribute,
    DuplicateBlueprint,
    InvalidAttribute,
    InvalidOptions,
    MissingPersistence,
    RegistryFrozen,
    UnknownAttribute,
)
from .naming import Namespace, blueprint_name_for, resolve_target
from .values import ValueProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_contrat = TypeVar("T_contrat", contravariant=True)

MaybeOverrides = Mapping[str, Any] | None

Attributes: TypeAlias = dict[str, Any]
"""
Resolved attributes of a model object, keyed by attribute name.

For example for this blueprint:

```python
with registry.blueprint("user") as factory:
    factory.set("name", "Billy Idol")
    factory.set("email", Computed(lambda name: f"{name}@example.com".replace(" ", ".").lower()))
```

`registry.attributes_for("user")` should looks like:

```python
{"name": "Billy Idol", "email": "billy.idol@example.com"}
```
"""

Name: TypeAlias = str | type[Any]
"""
Identifier of a blueprint.

Either its name, or a class whose underscored name is the blueprint name:

```python
"blog_post"
BlogPost
```
"""

BLUEPRINT_OPTIONS = frozenset({"target", "storage"})
ASSOCIATION_OPTIONS = frozenset({"blueprint", "overrides"})


class Strategy(enum.Enum):
    """Tell what a resolution produces, and what associations produce."""

    ATTRIBUTES_FOR = enum.auto()
    BUILD = enum.auto()
    CREATE = enum.auto()


def Absent() -> AbsentSentinel:
    return AbsentSentinel.DEFAULT


class AbsentSentinel(enum.Enum):
    """Sentinel used to mark absent of a value, when None is meaningfull.

    Use `Absent()` directly
    """

    DEFAULT = enum.auto()


class Persist(Protocol[T_contrat]):
    def __call__(self, instance: T_contrat, attributes: Attributes) -> None:
        ...


def save_instance(instance: Any, attributes: Attributes) -> None:
    """Default storage: delegate to the instance own ``save()``."""
    save = getattr(instance, "save", None)
    if save is None:
        raise MissingPersistence(type(instance))
    save()


def check_options(options: Mapping[str, Any], allowed: frozenset[str]) -> None:
    if unknown := set(options) - allowed:
        raise InvalidOptions(unknown, set(allowed))


Computation: TypeAlias = Callable[["AttributeResolutionContext"], Any]


@dataclass(frozen=True, slots=True)
class Static(Generic[T]):
    value: T

    def __call__(self, context: AttributeResolutionContext) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Deferred(Generic[T]):
    computation: Callable[[AttributeResolutionContext], T]

    def __call__(self, context: AttributeResolutionContext) -> T:
        return self.computation(context)


ValueSource: TypeAlias = Static[Any] | Deferred[Any]


@dataclass(frozen=True, slots=True)
class Attribute:
    name: str
    source: ValueSource

    @classmethod
    def define(cls, name: str, value: Any = Absent(), lazy: Computation | None = None) -> Attribute:
        """Make an attribute from exactly one of a static value or a lazy computation."""
        match value, lazy:
            case AbsentSentinel.DEFAULT, None:
                raise InvalidAttribute(name, "a value or a lazy computation is required")
            case AbsentSentinel.DEFAULT, _ if callable(lazy):
                return cls(name, Deferred(lazy))
            case AbsentSentinel.DEFAULT, _:
                raise InvalidAttribute(name, "lazy computation must be callable")
            case _, None:
                return cls(name, Static(value))
            case _:
                raise InvalidAttribute(name, "both value and lazy computation given")

    @property
    def deferred(self) -> bool:
        return isinstance(self.source, Deferred)

    def value(self, context: AttributeResolutionContext) -> Any:
        return self.source(context)


def make_attribute(name: str, value: Any) -> Attribute:
    source: ValueSource
    match value:
        case ValueProvider():
            source = Deferred(value)
        case _:
            source = Static(value)
    return Attribute(name, source)


@dataclass(frozen=True, slots=True)
class Association:
    """Deferred computation building another blueprint with the current strategy."""

    name: Name
    overrides: Mapping[str, Any] = field(default_factory=dict)

    def __call__(self, context: AttributeResolutionContext) -> Any:
        return context.build_association(self.name, self.overrides)


class AttributeResolutionContext(Mapping[str, Any]):
    """
    What a lazy attribute sees while it is evaluated.

    It reads like the attributes resolved so far (overrides included), and
    lets the computation build associations with the current strategy:

    ```python
    @factory.lazy("email")
    def _(context: AttributeResolutionContext) -> str:
        return f"{context['name']}@example.com"
    ```
    """

    __slots__ = ("blueprint", "attribute", "strategy", "_values")

    def __init__(
        self,
        blueprint: Blueprint[Any],
        attribute: str,
        strategy: Strategy,
        values: Mapping[str, Any],
    ) -> None:
        self.blueprint = blueprint
        self.attribute = attribute
        self.strategy = strategy
        self._values = MappingProxyType(values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return (
            f"<AttributeResolutionContext {self.blueprint.name}.{self.attribute} "
            f"strategy={self.strategy.name} values={dict(self._values)!r}>"
        )

    def value_for(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise UnknownAttribute(self.blueprint.name, name) from None

    def build_association(self, name: Name, overrides: MaybeOverrides = None) -> Any:
        """
        Build the `name` blueprint with the strategy of the current resolution.

        The blueprint is always looked up. Returns ``None`` when only attributes
        are collected, so that ``attributes_for`` never instantiates nor persists anything.
        """
        blueprint = self.blueprint.registry.lookup(name)
        match self.strategy:
            case Strategy.BUILD:
                return blueprint.build(overrides)
            case Strategy.CREATE:
                return blueprint.create(overrides)
            case _:
                return None


@dataclass(frozen=True, kw_only=True)
class Blueprint(Generic[T]):
    name: str
    registry: Registry = field(repr=False, compare=False)
    target: type[T] | str | None = None
    attributes: tuple[Attribute, ...] = ()
    storage: Persist[T] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for attribute in self.attributes:
            if attribute.name in seen:
                raise DuplicateAttribute(self.name, attribute.name)
            seen.add(attribute.name)

    @cached_property
    def target_type(self) -> type[T]:
        return resolve_target(self.name, self.target, self.registry.namespaces)

    def resolve_attributes(self, overrides: MaybeOverrides = None, strategy: Strategy = Strategy.ATTRIBUTES_FOR) -> Attributes:
        values: Attributes = dict(overrides or {})
        passed = self.registry.aliases.expand(values)
        for attribute in self.attributes:
            if attribute.name in passed:
                continue
            context = AttributeResolutionContext(self, attribute.name, strategy, values)
            values[attribute.name] = attribute.value(context)
        return values

    def attributes_for(self, overrides: MaybeOverrides = None) -> Attributes:
        return self.resolve_attributes(overrides, Strategy.ATTRIBUTES_FOR)

    def build(self, overrides: MaybeOverrides = None) -> T:
        instance, _ = self._build_instance(overrides, Strategy.BUILD)
        return instance

    def create(self, overrides: MaybeOverrides = None) -> T:
        instance, attributes = self._build_instance(overrides, Strategy.CREATE)
        persist = self.storage or self.registry.storage or save_instance
        logger.debug("Persisting %r built by factory %r", instance, self.name)
        persist(instance, attributes)
        return instance

    def _build_instance(self, overrides: MaybeOverrides, strategy: Strategy) -> tuple[T, Attributes]:
        attributes = self.resolve_attributes(overrides, strategy)
        instance = self.target_type()
        for attr, value in attributes.items():
            setattr(instance, attr, value)
        return instance, attributes


@dataclass(kw_only=True, slots=True)
class BlueprintDSL(Generic[T]):
    """Collect the attributes of one blueprint, then register it."""

    registry: Registry
    name: str
    target: type[T] | str | None = None
    storage: Persist[T] | None = None
    attributes: list[Attribute] = field(default_factory=list)
    registered: Blueprint[T] | None = None

    def add_attribute(self, name: str, value: Any = Absent(), /, *, lazy: Computation | None = None) -> None:
        """Add a static `value`, or a `lazy` computation called with an `AttributeResolutionContext`.

        ```python
        factory.add_attribute("name", "Billy Idol")
        factory.add_attribute("email", lazy=lambda context: f"{context['name']}@example.com")
        ```
        """
        self._append(Attribute.define(name, value, lazy))

    def set(self, name: str, value: Any, /) -> None:
        """Set a value for `name`.

        Value may be anything. Value providers (Computed, Cycle, Sequence) are
        evaluated each time the blueprint is resolved.
        """
        self._append(make_attribute(name, value))

    def lazy(self, name: str) -> Callable[[Computation], Computation]:
        """Decorator used to add a lazy attribute

        Example:

        ```python
        @factory.lazy("email")
        def _(context):
            return f"{context['name']}@example.com"
        ```
        """

        def inner(computation: Computation, /) -> Computation:
            self.add_attribute(name, lazy=computation)
            return computation

        return inner

    def add_association(self, name: str, /, **options: Any) -> None:
        """Add an attribute built by another blueprint, with the same strategy.

        Options:
            blueprint: name of the associated blueprint, defaults to `name`
            overrides: overrides passed to the associated blueprint
        """
        check_options(options, ASSOCIATION_OPTIONS)
        association = Association(options.get("blueprint") or name, dict(options.get("overrides") or {}))
        self._append(Attribute(name, Deferred(association)))

    def register(self) -> Blueprint[T]:
        if self.registered is not None:
            raise BlueprintSealed(self.name)
        blueprint: Blueprint[T] = Blueprint(
            name=self.name,
            registry=self.registry,
            target=self.target,
            attributes=tuple(self.attributes),
            storage=self.storage,
        )
        self.registry.register(blueprint)
        self.registered = blueprint
        return blueprint

    def _append(self, attribute: Attribute) -> None:
        if self.registered is not None:
            raise BlueprintSealed(self.name)
        if any(existing.name == attribute.name for existing in self.attributes):
            raise DuplicateAttribute(self.name, attribute.name)
        self.attributes.append(attribute)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, *args: Any) -> None:
        if exc_type is None:
            self.register()


@dataclass(kw_only=True, slots=True)
class Registry:
    blueprints: dict[str, Blueprint[Any]] = field(default_factory=dict)
    aliases: Aliases = field(default_factory=Aliases)
    namespaces: list[Namespace] = field(default_factory=list)
    """Modules searched for the classes of blueprints declared without a class"""
    storage: Persist[Any] | None = None
    """Default storage of blueprints declared without one"""
    frozen: bool = False

    def define(
        self,
        name: Name,
        declare: Annotated[
            Callable[[BlueprintDSL[Any]], Any],
            Doc(
                """
                Called once with the declaration builder, before the blueprint is registered
                """
            ),
        ],
        /,
        **options: Any,
    ) -> Blueprint[Any]:
        """
        Declare and register a blueprint.

        Options:
            target: the class to instantiate, or its import path. Guessed from `name` when unset.
            storage: how instances are persisted by ``create``

        ```python
        def user(factory):
            factory.add_attribute("name", "Billy Idol")

        registry.define("user", user, target=User)
        ```
        """
        dsl = self.blueprint(name, **options)
        declare(dsl)
        return dsl.register()

    def blueprint(self, name: Name, /, **options: Any) -> BlueprintDSL[Any]:
        """
        Same as `define`, used as a context manager.

        ```python
        with registry.blueprint(User) as factory:
            factory.set("name", "Billy Idol")
        ```
        """
        check_options(options, BLUEPRINT_OPTIONS)
        blueprint_name = blueprint_name_for(name)
        self._check_definable(blueprint_name)
        target = options.get("target")
        if target is None and isinstance(name, type):
            target = name
        return BlueprintDSL(registry=self, name=blueprint_name, target=target, storage=options.get("storage"))

    def register(self, blueprint: Blueprint[Any]) -> None:
        self._check_definable(blueprint.name)
        self.blueprints[blueprint.name] = blueprint
        logger.debug("Registered factory %r with %d attribute(s)", blueprint.name, len(blueprint.attributes))

    def alias(self, pattern: str, replacement: str) -> None:
        """Let override keys matching `pattern` stand for the `replacement` attribute."""
        if self.frozen:
            raise RegistryFrozen()
        self.aliases.add(pattern, replacement)

    def freeze(self) -> Self:
        self.frozen = True
        logger.debug("Registry frozen with %d factories", len(self.blueprints))
        return self

    def reset(self) -> None:
        self.blueprints.clear()
        self.aliases = Aliases()
        self.frozen = False

    def lookup(self, name: Name) -> Blueprint[Any]:
        key = blueprint_name_for(name)
        try:
            return self.blueprints[key]
        except KeyError:
            raise BlueprintNotFound(key) from None

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str | type):
            return False
        return blueprint_name_for(name) in self.blueprints

    def attributes_for(self, name: Name, overrides: MaybeOverrides = None) -> Attributes:
        """Get attributes for one model instance.

        Associations are not built, they are set to ``None``.
        """
        return self.lookup(name).attributes_for(overrides)

    def build(self, name: Name, overrides: MaybeOverrides = None) -> Any:
        """Build one model instance, without persisting it.

        ```python
        user = build("user")
        assert isinstance(user, User)
        ```
        """
        return self.lookup(name).build(overrides)

    def build_many(self, count: int, /, name: Name, overrides: MaybeOverrides = None) -> list[Any]:
        blueprint = self.lookup(name)
        return [blueprint.build(overrides) for _ in range(count)]

    def create(
        self,
        name: Name,
        overrides: Annotated[
            MaybeOverrides,
            Doc(
                """
                Values used instead of the blueprint ones. Overridden attributes are never evaluated.
                """
            ),
        ] = None,
    ) -> Any:
        """Build and persist one model instance, and its associations.

        ```python
        post = create("post")
        assert post.author.saved
        ```
        """
        return self.lookup(name).create(overrides)

    def create_many(self, count: int, /, name: Name, overrides: MaybeOverrides = None) -> list[Any]:
        blueprint = self.lookup(name)
        return [blueprint.create(overrides) for _ in range(count)]

    def _check_definable(self, name: str) -> None:
        if self.frozen:
            raise RegistryFrozen(name)
        if name in self.blueprints:
            raise DuplicateBlueprint(name)
