from __future__ import annotations

import re
from importlib import import_module
from pkgutil import resolve_name
from types import ModuleType
from typing import Any, Iterable

from .errors import TargetNotFound

Namespace = str | ModuleType


def underscore(word: str) -> str:
    """``BlogPost`` -> ``blog_post``, ``HTTPRequest`` -> ``http_request``"""
    word = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", word)
    word = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", word)
    return word.replace("-", "_").lower()


def camelize(word: str) -> str:
    """``blog_post`` -> ``BlogPost``"""
    return "".join(part[:1].upper() + part[1:] for part in word.split("_"))


def blueprint_name_for(name: str | type[Any]) -> str:
    if isinstance(name, type):
        return underscore(name.__name__)
    return name


def resolve_target(blueprint: str, target: type[Any] | str | None, namespaces: Iterable[Namespace]) -> type[Any]:
    """
    Find the class instantiated by a blueprint.

    Parameters:
        blueprint: name of the blueprint, used to infer the class name when `target` is unset
        target: a class, an import path like ``pkg.models:User`` or ``pkg.models.User``,
            or a bare class name looked up in `namespaces`
        namespaces: modules, or module names, searched for bare class names
    """
    if isinstance(target, type):
        return target

    if target and ("." in target or ":" in target):
        try:
            found = resolve_name(target)
        except (ImportError, AttributeError, ValueError) as error:
            raise TargetNotFound(blueprint, target) from error
        if not isinstance(found, type):
            raise TargetNotFound(blueprint, target)
        return found

    class_name = target or camelize(blueprint)
    for namespace in namespaces:
        try:
            module = import_module(namespace) if isinstance(namespace, str) else namespace
        except ImportError as error:
            raise TargetNotFound(blueprint, class_name) from error
        found = getattr(module, class_name, None)
        if isinstance(found, type):
            return found
    raise TargetNotFound(blueprint, class_name)
