"""
Module system: class registration, class ordering, instance discovery and
dependency resolution.

Classes form a DAG ordered by height (leaf classes first). Instances are
discovered from per-class glob patterns, their declared dependencies are
resolved to live ModuleInstance objects, and every instance gets its
recursive dependency closure sorted so that, within one class, an instance
never precedes an instance it depends on.
"""

import glob
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import networkx as nx

from gateway_codegen.configs import load_class_config, read_config_file
from gateway_codegen.errors import CodegenError, ConfigError, DependencyError
from gateway_codegen.gen_logging import get_logger
from gateway_codegen.module.instance import (
    ModuleClass,
    ModuleDependency,
    ModuleInstance,
    new_package_info,
)
from gateway_codegen.module.parallel import raise_first, run_parallel
from gateway_codegen.module.registry import GeneratorRegistry

logger = get_logger(__name__)


class ModuleSystem:
    """
    Registry of module classes plus the discovery and resolution passes.

    Args:
        module_search_paths: class name -> glob patterns relative to the
            config root, e.g. {"client": ["clients/*"]}.
        default_dependencies: class name -> glob patterns of instances every
            instance of that class depends on.
    """

    def __init__(self, module_search_paths: Dict[str, List[str]],
                 default_dependencies: Optional[Dict[str, List[str]]] = None):
        self.module_search_paths = {
            name: list(patterns) for name, patterns in module_search_paths.items()
        }
        self.default_dependencies = {
            name: list(patterns) for name, patterns in (default_dependencies or {}).items()
        }
        self.classes: Dict[str, ModuleClass] = {}
        self.class_order: List[str] = []
        self.registry = GeneratorRegistry()
        self.post_gen_hooks: Dict[str, object] = {}

    # ------------------------------------------------------------------
    # Registration

    def register_class(self, module_class: ModuleClass) -> None:
        name = module_class.name
        if not name:
            raise ConfigError("A module class name must not be empty")
        if not module_class.name_plural:
            raise ConfigError(f'Module class "{name}" must have a plural name')
        if name in self.classes:
            raise ConfigError(f'Module class "{name}" is already defined')
        self.classes[name] = module_class
        self.class_order = []

    def register_class_type(self, class_name: str, class_type: str, generator) -> None:
        if class_name not in self.classes:
            raise ConfigError(
                f'Cannot set class type "{class_type}" for undefined class "{class_name}"'
            )
        self.registry.register(class_name, class_type, generator)

    def add_post_gen_hook(self, name: str, hook) -> None:
        if name in self.post_gen_hooks:
            raise ConfigError(f'Post generation hook "{name}" is already registered')
        self.post_gen_hooks[name] = hook

    # ------------------------------------------------------------------
    # Class order

    def resolve_class_order(self) -> List[str]:
        """
        Order classes so that every class comes after the classes it
        depends on: group by DAG height, alphabetical within a group.

        Raises:
            DependencyError: an edge names an unknown class, or the classes
                contain a cycle.
        """
        graph = nx.DiGraph()
        graph.add_nodes_from(sorted(self.classes))
        for name in sorted(self.classes):
            module_class = self.classes[name]
            for dependency in module_class.depends_on:
                if dependency not in self.classes:
                    raise DependencyError(
                        f'module class "{name}" depends on "{dependency}" which is not defined'
                    )
                graph.add_edge(name, dependency)
            for dependent in module_class.depended_by:
                if dependent not in self.classes:
                    raise DependencyError(
                        f'module class "{name}" is depended by "{dependent}" which is not defined'
                    )
                graph.add_edge(dependent, name)

        for name, module_class in self.classes.items():
            module_class.dependent_classes = [
                self.classes[dependency] for dependency in sorted(graph.successors(name))
            ]

        heights: Dict[str, int] = {}
        try:
            for name in sorted(graph.nodes):
                _class_height(graph, name, heights, [])
        except DependencyError as exc:
            raise exc.wrap("error resolving module class order") from exc

        order = []
        for height in sorted(set(heights.values())):
            order.extend(sorted(name for name, value in heights.items() if value == height))
        self.class_order = order
        return list(order)

    def class_depends_on(self, class_name: str) -> List[str]:
        """Classes class_name may depend on, after depended_by edges are joined."""
        return [item.name for item in self.classes[class_name].dependent_classes]

    # ------------------------------------------------------------------
    # Discovery and resolution

    def resolve_modules(self, base_directory: str, target_gen_dir: str,
                        package_root: str) -> Dict[str, List[ModuleInstance]]:
        """
        Discover every instance under base_directory and resolve its
        dependencies.

        Returns:
            class name -> instances sorted by instance name, for every class
            in class order.
        """
        if not self.class_order:
            self.resolve_class_order()

        base_directory = str(Path(base_directory).resolve())
        target_gen_dir = str(Path(target_gen_dir).resolve())

        resolved: Dict[str, List[ModuleInstance]] = {}
        for class_name in self.class_order:
            resolved[class_name] = self._discover_class(
                class_name, base_directory, target_gen_dir, package_root
            )

        self._apply_default_dependencies(resolved, base_directory)
        resolve_dependencies(self, resolved)
        return resolved

    def _class_directories(self, class_name: str, base_directory: str) -> List[str]:
        directories = []
        seen = set()
        for pattern in self.module_search_paths.get(class_name, []):
            for match in sorted(glob.glob(os.path.join(base_directory, pattern))):
                if not os.path.isdir(match):
                    continue
                relative = Path(os.path.relpath(match, base_directory)).as_posix()
                if relative not in seen:
                    seen.add(relative)
                    directories.append(relative)
        return directories

    def _discover_class(self, class_name: str, base_directory: str,
                        target_gen_dir: str, package_root: str) -> List[ModuleInstance]:
        directories = self._class_directories(class_name, base_directory)
        outcomes = run_parallel(
            lambda directory: self._read_instance(
                class_name, base_directory, target_gen_dir, package_root, directory
            ),
            directories,
        )
        found = [
            instance
            for instance in raise_first(outcomes, lambda directory: f"{class_name} {directory}")
            if instance is not None
        ]

        by_name: Dict[str, ModuleInstance] = {}
        for instance in found:
            previous = by_name.get(instance.instance_name)
            if previous is not None:
                raise DependencyError(
                    f'{class_name} instance "{instance.instance_name}" is defined in both '
                    f"{previous.directory} and {instance.directory}"
                )
            by_name[instance.instance_name] = instance

        instances = [by_name[name] for name in sorted(by_name)]
        _dedupe_aliases(instances)
        logger.debug("Discovered %d %s instance(s)", len(instances), class_name)
        return instances

    def _read_instance(self, class_name: str, base_directory: str, target_gen_dir: str,
                       package_root: str, directory: str) -> Optional[ModuleInstance]:
        instance_dir = Path(base_directory) / directory
        config_path = None
        for suffix in (".yaml", ".json"):
            candidate = instance_dir / f"{class_name}-config{suffix}"
            if candidate.is_file():
                config_path = candidate
                break
        if config_path is None:
            return None

        raw = read_config_file(config_path)
        try:
            config = load_class_config(raw, str(config_path))
        except CodegenError as exc:
            raise exc.wrap(f"Error reading {class_name} config {config_path}") from exc

        plural = self.classes[class_name].name_plural
        instance_name = derive_instance_name(directory, plural) or config.name
        dependencies = [
            ModuleDependency(dependency_class, dependency_name)
            for dependency_class in sorted(config.dependencies)
            for dependency_name in config.dependencies[dependency_class]
        ]

        package_info = new_package_info(
            package_root=package_root,
            base_directory=base_directory,
            target_gen_dir=target_gen_dir,
            class_name=class_name,
            class_type=config.type,
            instance_name=instance_name,
            instance_directory=directory,
            is_export_generated=config.is_export_generated,
        )
        return ModuleInstance(
            class_name=class_name,
            class_type=config.type,
            instance_name=instance_name,
            base_directory=base_directory,
            directory=directory,
            yaml_file_name=str(config_path),
            yaml_file_bytes=raw,
            config=config,
            package_info=package_info,
            target_gen_dir=target_gen_dir,
            dependencies=dependencies,
            selective_building=config.selective_building,
        )

    def _apply_default_dependencies(self, resolved: Dict[str, List[ModuleInstance]],
                                    base_directory: str) -> None:
        by_directory = {
            instance.directory: instance
            for instances in resolved.values()
            for instance in instances
        }
        for class_name, patterns in self.default_dependencies.items():
            if class_name not in self.classes:
                raise DependencyError(f'default dependencies declared for unknown class "{class_name}"')
            defaults = []
            for pattern in patterns:
                for match in sorted(glob.glob(os.path.join(base_directory, pattern))):
                    if not os.path.isdir(match):
                        continue
                    relative = Path(os.path.relpath(match, base_directory)).as_posix()
                    target = by_directory.get(relative)
                    if target is None:
                        raise DependencyError(
                            f"default dependency {relative} of {class_name} does not match "
                            "any module class search path"
                        )
                    if target.class_name not in self.class_depends_on(class_name):
                        raise DependencyError(
                            f'default dependency {relative} of class "{class_name}" belongs to class '
                            f'"{target.class_name}" which "{class_name}" does not depend on'
                        )
                    defaults.append(target.key())

            for instance in resolved.get(class_name, []):
                for dependency in defaults:
                    if dependency not in instance.dependencies:
                        instance.dependencies.append(dependency)


def derive_instance_name(directory: str, plural: str) -> str:
    """`endpoints/tchannel/foo` -> `tchannel/foo`; empty when the path does not start with plural."""
    parts = [part for part in directory.split("/") if part and part != "."]
    if len(parts) > 1 and parts[0] == plural:
        return "/".join(parts[1:])
    return ""


def _class_height(graph, name: str, heights: Dict[str, int], path: List[str]) -> int:
    if name in heights:
        return heights[name]
    if name in path:
        cycle = path[path.index(name):] + [name]
        raise DependencyError(
            f'dependency cycle detected for module class "{name}": {"->".join(cycle)}'
        )
    path.append(name)
    height = 0
    for dependency in sorted(graph.successors(name)):
        height = max(height, _class_height(graph, dependency, heights, path) + 1)
    path.pop()
    heights[name] = height
    return height


def _dedupe_aliases(instances: List[ModuleInstance]) -> None:
    """Give instances whose aliases collide a numeric suffix, in directory order."""
    seen: Dict[str, int] = {}
    for instance in sorted(instances, key=lambda item: item.directory):
        info = instance.package_info
        count = seen.get(info.package_name, 0)
        seen[info.package_name] = count + 1
        if count:
            base = f"{info.package_name}{count + 1}"
            info.package_name = base
            info.package_alias = base + "Static"
            info.generated_package_alias = base + "Generated"
            info.module_package_alias = base + "Module"


# ----------------------------------------------------------------------
# Dependency resolution

def resolve_dependencies(system: ModuleSystem, resolved: Dict[str, List[ModuleInstance]]) -> None:
    """
    Fill resolved_dependencies, recursive_dependencies and dependency_order
    of every instance in resolved.

    Raises:
        DependencyError: unknown class or instance, a class edge the DAG does
            not allow, a self dependency, or a cycle between peers.
    """
    index = {
        (instance.class_name, instance.instance_name): instance
        for instances in resolved.values()
        for instance in instances
    }

    for class_name in system.class_order:
        allowed = set(system.class_depends_on(class_name)) | {class_name}
        for instance in resolved.get(class_name, []):
            direct: Dict[str, List[ModuleInstance]] = {}
            for dependency in instance.dependencies:
                if dependency.class_name not in system.classes:
                    raise DependencyError(
                        f'Invalid class name "{dependency.class_name}" in dependencies for '
                        f'"{class_name}" "{instance.instance_name}"'
                    )
                if dependency.class_name not in allowed:
                    raise DependencyError(
                        f'"{class_name}" "{instance.instance_name}" depends on class '
                        f'"{dependency.class_name}" which class "{class_name}" does not depend on'
                    )
                target = index.get((dependency.class_name, dependency.instance_name))
                if target is None:
                    raise DependencyError(
                        f'Unknown "{dependency.class_name}" class dependency '
                        f'"{dependency.instance_name}" in dependencies for '
                        f'"{class_name}" "{instance.instance_name}"'
                    )
                if target is instance:
                    raise DependencyError(f'"{class_name}" "{instance.instance_name}" depends on itself')
                bucket = direct.setdefault(dependency.class_name, [])
                if target not in bucket:
                    bucket.append(target)
            instance.resolved_dependencies = direct

    recursive_sets: Dict[int, Dict[str, set]] = {}
    for instances in resolved.values():
        for instance in instances:
            _recursive_set(instance, recursive_sets, [])

    for instances in resolved.values():
        for instance in instances:
            _apply_recursive(system, instance, recursive_sets[id(instance)], recursive_sets)


def _recursive_set(instance: ModuleInstance, memo: Dict[int, Dict[str, set]],
                   stack: List[ModuleInstance]) -> Dict[str, set]:
    if id(instance) in memo:
        return memo[id(instance)]
    if instance in stack:
        blocker = stack[stack.index(instance) + 1] if stack.index(instance) + 1 < len(stack) else instance
        raise DependencyError(
            f"Dependency cycle: {blocker.instance_name} cannot be initialized before "
            f"{instance.instance_name}"
        )

    stack.append(instance)
    closure: Dict[str, set] = {}
    for class_name, dependencies in instance.resolved_dependencies.items():
        for dependency in dependencies:
            closure.setdefault(class_name, set()).add(dependency)
            for nested_class, nested in _recursive_set(dependency, memo, stack).items():
                closure.setdefault(nested_class, set()).update(nested)
    stack.pop()
    memo[id(instance)] = closure
    return closure


def _apply_recursive(system: ModuleSystem, instance: ModuleInstance,
                     closure: Dict[str, set], memo: Dict[int, Dict[str, set]]) -> None:
    def peer_depends(a: ModuleInstance, b: ModuleInstance) -> bool:
        return a.class_name == b.class_name and b in memo[id(a)].get(a.class_name, ())

    instance.resolved_dependencies = {
        class_name: sort_dependency_list(dependencies, peer_depends)
        for class_name, dependencies in instance.resolved_dependencies.items()
    }
    instance.recursive_dependencies = {
        class_name: sort_dependency_list(members, peer_depends)
        for class_name, members in closure.items()
    }
    instance.dependency_order = [
        class_name for class_name in system.class_order
        if class_name in instance.recursive_dependencies
    ]


def sort_dependency_list(instances: Iterable[ModuleInstance], peer_depends) -> List[ModuleInstance]:
    """
    Sort alphabetically, then move every instance in front of the first
    instance that depends on it.

    Raises:
        DependencyError: two instances depend on each other.
    """
    ordered: List[ModuleInstance] = []
    for instance in sorted(instances, key=lambda item: item.instance_name):
        position = len(ordered)
        for index, other in enumerate(ordered):
            if peer_depends(other, instance):
                position = index
                break
        for other in ordered[position:]:
            if peer_depends(instance, other):
                raise DependencyError(
                    f"Dependency cycle: {other.instance_name} cannot be initialized before "
                    f"{instance.instance_name}"
                )
        ordered.insert(position, instance)
    return ordered


def trim_selective(instance: ModuleInstance, scheduled: set, class_order: List[str]) -> None:
    """
    Restrict a selective-building instance to dependencies scheduled in the
    current build. Classes left without a scheduled dependency are dropped;
    when nothing at all is scheduled the original dependencies are kept. The
    recursive set is rebuilt from the trimmed direct deps.
    """
    trimmed: Dict[str, List[ModuleInstance]] = {}
    for class_name, dependencies in instance.resolved_dependencies.items():
        kept = [dependency for dependency in dependencies if dependency in scheduled]
        if kept:
            trimmed[class_name] = kept
    if not trimmed:
        trimmed = {
            class_name: list(dependencies)
            for class_name, dependencies in instance.resolved_dependencies.items()
        }

    closure: Dict[str, List[ModuleInstance]] = {}
    for class_name, dependencies in trimmed.items():
        for dependency in dependencies:
            _append_unique(closure.setdefault(class_name, []), dependency)
            for nested_class, nested in dependency.recursive_dependencies.items():
                for item in nested:
                    _append_unique(closure.setdefault(nested_class, []), item)

    def peer_depends(a: ModuleInstance, b: ModuleInstance) -> bool:
        return a.class_name == b.class_name and a.depends_on_instance(b)

    instance.resolved_dependencies = {
        class_name: sort_dependency_list(dependencies, peer_depends)
        for class_name, dependencies in trimmed.items()
    }
    instance.recursive_dependencies = {
        class_name: sort_dependency_list(members, peer_depends)
        for class_name, members in closure.items()
    }
    instance.dependency_order = [
        class_name for class_name in class_order if class_name in instance.recursive_dependencies
    ]


def _append_unique(items: list, value) -> None:
    if value not in items:
        items.append(value)
