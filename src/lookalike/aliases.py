from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Pattern


@dataclass(frozen=True, slots=True)
class Alias:
    pattern: Pattern[str]
    replacement: str

    def apply(self, key: str) -> str | None:
        if match := self.pattern.fullmatch(key):
            return match.expand(self.replacement)
        return None


def make_alias(pattern: str | Pattern[str], replacement: str) -> Alias:
    return Alias(re.compile(pattern), replacement)


def default_aliases() -> list[Alias]:
    # `user_id` stands for `user`, and `user` stands for `user_id`
    return [
        make_alias(r"(.+)_id", r"\1"),
        make_alias(r"(.+)", r"\1_id"),
    ]


@dataclass(slots=True)
class Aliases:
    """
    Rules telling which attributes an override key stands for.

    With the default rules, overriding ``author_id`` prevents the ``author``
    attribute from being evaluated:

    ```python
    aliases = Aliases()
    assert aliases.aliases_for("author_id") == ["author", "author_id_id", "author_id"]
    ```
    """

    rules: list[Alias] = field(default_factory=default_aliases)

    def add(self, pattern: str | Pattern[str], replacement: str) -> None:
        self.rules.append(make_alias(pattern, replacement))

    def aliases_for(self, key: str) -> list[str]:
        names = [alias for rule in self.rules if (alias := rule.apply(key)) is not None]
        names.append(key)
        return names

    def expand(self, keys: Iterable[str]) -> set[str]:
        return {name for key in keys for name in self.aliases_for(key)}
