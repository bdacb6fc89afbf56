"""Middleware generator."""

from pathlib import Path

from gateway_codegen.configs import load_middleware_config
from gateway_codegen.generators.base import Generator
from gateway_codegen.module.instance import BuildResult


class MiddlewareGenerator(Generator):
    def compute_spec(self, instance):
        return load_middleware_config(
            instance.yaml_file_bytes,
            instance.yaml_file_name,
            Path(instance.base_directory) / instance.directory,
            self.helper.config_root,
        )

    def generate(self, instance) -> BuildResult:
        return BuildResult(files=self.dependencies_file(instance), spec=self.compute_spec(instance))
