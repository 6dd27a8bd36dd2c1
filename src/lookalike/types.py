from collections.abc import Mapping
from typing import Any, TypeAlias

Context: TypeAlias = Mapping[str, Any]
"""
Attributes resolved so far while a blueprint is being evaluated.
"""
