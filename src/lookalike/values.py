from abc import abstractmethod
from dataclasses import dataclass, field
from inspect import Parameter, signature
from itertools import cycle
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

from .types import Context

T = TypeVar("T")


def _parameters(func: Callable[..., object]) -> list[str]:
    params = signature(func).parameters
    kinds = {param.kind for param in params.values()}
    if Parameter.VAR_POSITIONAL in kinds:
        raise ValueError("cannot do *args")
    if Parameter.VAR_KEYWORD in kinds:
        raise ValueError("cannot do **kwargs")
    return list(params)


def _siblings(context: Context | None, names: list[str]) -> list[Any]:
    # unresolved siblings read as None
    resolved = context or {}
    return [resolved.get(name) for name in names]


@dataclass
class ValueProvider(Generic[T]):
    """
    Base of the values re-evaluated every time a blueprint is resolved.

    Blueprints store them as lazy attributes: they are called with the
    attributes resolved so far, and never called when overridden.
    """

    dependencies: list[str] = field(kw_only=True, default_factory=list)
    """Sibling attributes read from the context"""

    @abstractmethod
    def __call__(self, context: Context | None = None) -> T:
        raise NotImplementedError


@dataclass
class Cycle(ValueProvider[T]):
    """Hand out `values` in turn, starting over once exhausted."""

    values: Iterable[T]
    _rounds: Iterator[T] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._rounds = cycle(self.values)

    def __call__(self, context: Context | None = None) -> T:
        return next(self._rounds)

    def __next__(self) -> T:
        return self()


@dataclass
class Computed(ValueProvider[T]):
    """
    Derive a value from sibling attributes, passed by parameter name.

    ```python
    factory.set("name", "Billy Idol")
    factory.set("email", Computed(lambda name: f"{name}@example.com".replace(" ", ".").lower()))
    ```

    Only attributes declared (or overridden) before it are visible.
    """

    wrapped: Callable[..., T]

    def __post_init__(self) -> None:
        self.dependencies = _parameters(self.wrapped)

    def __call__(self, context: Context | None = None) -> T:
        return self.wrapped(*_siblings(context, self.dependencies))


@dataclass
class Sequence(ValueProvider[T]):
    """
    Number every evaluation, so that generated values stay unique.

    The wrapped callable gets the counter first, then the sibling attributes
    named by its other parameters:

    ```python
    factory.set("title", Sequence(lambda n: f"Rebel Yell, take {n}"))
    factory.set("slug", Sequence(lambda n, title: f"{title.lower()}-{n}"))
    ```

    The counter moves on even when the callable raises.
    """

    wrapped: Callable[..., T] = field(default=lambda n: n)
    i: int = 0

    def __post_init__(self) -> None:
        self.dependencies = _parameters(self.wrapped)[1:]

    def __call__(self, context: Context | None = None) -> T:
        n, self.i = self.i, self.i + 1
        return self.wrapped(n, *_siblings(context, self.dependencies))
