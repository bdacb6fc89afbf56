"""Fixture description attached to clients for mock generation."""

from typing import Dict, Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from gateway_codegen.errors import ConfigError


class Fixture(BaseModel):
    """Canned scenarios per exposed method plus the package that implements them."""

    model_config = ConfigDict(populate_by_name=True)

    import_path: str = Field(alias="importPath", min_length=1)
    scenarios: Dict[str, List[str]] = Field(default_factory=dict)

    def validate_methods(self, methods: Iterable[str]) -> None:
        """Every scenario key must be one of the exposed methods."""
        if not self.import_path:
            raise ConfigError("fixture importPath is empty")
        known = set(methods)
        for method in self.scenarios:
            if method not in known:
                raise ConfigError(f'method "{method}" is not an exposed method')
