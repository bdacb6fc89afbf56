"""Table of generators keyed by (class, type)."""

from typing import Dict, Optional, Tuple

from gateway_codegen.errors import ConfigError


class GeneratorRegistry:
    def __init__(self):
        self._generators: Dict[Tuple[str, str], object] = {}

    def register(self, class_name: str, class_type: str, generator) -> None:
        key = (class_name, class_type)
        if key in self._generators:
            raise ConfigError(
                f'The class type "{class_type}" is already defined for class "{class_name}"'
            )
        self._generators[key] = generator

    def lookup(self, class_name: str, class_type: str) -> Optional[object]:
        return self._generators.get((class_name, class_type))


def provides_spec(generator) -> bool:
    """True when the generator can compute its spec without emitting files."""
    return callable(getattr(generator, "compute_spec", None))
