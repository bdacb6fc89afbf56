"""
Pytest configuration and shared fixtures for the gateway codegen test suite.
"""

import shutil
from pathlib import Path

import pytest
import yaml

from gateway_codegen.idl import ThriftLoader
from gateway_codegen.module import ModuleSystem, new_package_info
from gateway_codegen.module.instance import ModuleInstance
from gateway_codegen.configs import load_class_config
from gateway_codegen.package_helper import PackageHelper, PackageHelperOptions
from gateway_codegen.template import Template

PACKAGE_ROOT = "github.com/example/gateway"


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def fixtures_dir(project_root):
    """Return the bundled fixture directory."""
    return project_root / "tests" / "fixtures"


@pytest.fixture
def gateway_dir(fixtures_dir, tmp_path):
    """A private copy of the example gateway config tree."""
    target = tmp_path / "example-gateway"
    shutil.copytree(fixtures_dir / "example-gateway", target)
    return target


@pytest.fixture
def helper(gateway_dir):
    """PackageHelper rooted at the example gateway copy."""
    return PackageHelper(PackageHelperOptions(
        package_root=PACKAGE_ROOT,
        config_root=str(gateway_dir),
        copyright_header="// Copyright (c) Example Gateway Authors",
    ))


@pytest.fixture
def template():
    return Template()


@pytest.fixture
def loader():
    return ThriftLoader()


@pytest.fixture
def write_tree(tmp_path):
    """
    Factory writing a {relative path: content} mapping under a root.

    Mappings and lists are dumped as YAML; strings are written verbatim.
    """

    def _write(files, root=None):
        root = Path(root or tmp_path)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, (dict, list)):
                content = yaml.safe_dump(content, sort_keys=False)
            path.write_text(content)
        return root

    return _write


@pytest.fixture
def make_instance(gateway_dir):
    """
    Factory building a standalone ModuleInstance from config text, the way
    discovery would for `<plural>/<name>`.
    """

    def _make(class_name, document, name=None, base_directory=None, file_name=None):
        base = Path(base_directory or gateway_dir)
        raw = document if isinstance(document, bytes) else yaml.safe_dump(document).encode()
        config = load_class_config(raw, file_name or f"{class_name}-config.yaml")
        instance_name = name or config.name
        directory = f"{class_name}s/{instance_name}"
        target_gen_dir = str(base / "build")
        return ModuleInstance(
            class_name=class_name,
            class_type=config.type,
            instance_name=instance_name,
            base_directory=str(base),
            directory=directory,
            yaml_file_name=str(base / directory / (file_name or f"{class_name}-config.yaml")),
            yaml_file_bytes=raw,
            config=config,
            package_info=new_package_info(
                PACKAGE_ROOT, str(base), target_gen_dir, class_name, config.type,
                instance_name, directory, config.is_export_generated,
            ),
            target_gen_dir=target_gen_dir,
        )

    return _make


@pytest.fixture
def bare_system():
    """ModuleSystem with the four gateway classes and no generators."""
    from gateway_codegen.gateway import DEFAULT_CLASSES, DEFAULT_MODULE_SEARCH_PATHS
    from gateway_codegen.module import ModuleClass

    system = ModuleSystem(DEFAULT_MODULE_SEARCH_PATHS)
    for module_class in DEFAULT_CLASSES:
        system.register_class(ModuleClass(
            name=module_class.name,
            name_plural=module_class.name_plural,
            depends_on=list(module_class.depends_on),
        ))
    system.resolve_class_order()
    return system
