"""
Build orchestration: full builds and incremental builds over a resolved
module graph.

Classes are processed one after another in class order; the instances of a
class are generated in parallel. A later class therefore always sees the
final generated_spec of every instance it depends on.
"""

import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from gateway_codegen.errors import CodegenError, HookError, is_skip_codegen
from gateway_codegen.gen_logging import get_logger
from gateway_codegen.module.instance import ModuleDependency, ModuleInstance
from gateway_codegen.module.parallel import bounded_pool_size, raise_first, run_parallel
from gateway_codegen.module.registry import provides_spec
from gateway_codegen.module.system import ModuleSystem, sort_dependency_list, trim_selective
from gateway_codegen.module.writer import FileWriter

logger = get_logger(__name__)

ModuleMap = Dict[str, List[ModuleInstance]]


class BuildOrchestrator:
    """
    Drives generators over the instances resolved by a ModuleSystem.

    Args:
        system: ModuleSystem with classes, generators and hooks registered.
        writer: FileWriter used for generator and hook output.
        pool_factor: bounded pools use pool_factor x CPU count workers.
    """

    def __init__(self, system: ModuleSystem, writer: Optional[FileWriter] = None,
                 pool_factor: int = 2):
        self.system = system
        self.writer = writer or FileWriter()
        self.pool_factor = pool_factor
        self._progress_lock = threading.Lock()
        self._progress = 0

    # ------------------------------------------------------------------
    # Full build

    def full_build(self, base_directory: str, target_gen_dir: str, package_root: str,
                   commit_change: bool = True) -> ModuleMap:
        """Resolve every module under base_directory and generate all of them."""
        resolved = self.system.resolve_modules(base_directory, target_gen_dir, package_root)
        self._emit(resolved, target_gen_dir, commit_change, max_workers=None)
        if commit_change:
            self._run_hooks(resolved)
        return resolved

    # ------------------------------------------------------------------
    # Incremental build

    def incremental_build(self, target_gen_dir: str, resolved: ModuleMap,
                          changed: Iterable[ModuleDependency],
                          commit_change: bool = True) -> ModuleMap:
        """
        Regenerate the changed modules and everything that depends on them.

        An empty `changed` regenerates every instance that survives spec
        priming.

        Returns:
            The closure that was regenerated, class name -> instances.
        """
        working, forced = self._prime_specs(resolved)
        closure = self._closure(working, list(changed), forced)

        scheduled = {instance for instances in closure.values() for instance in instances}
        for class_name in self.system.class_order:
            for instance in closure.get(class_name, []):
                if instance.selective_building:
                    trim_selective(instance, scheduled, self.system.class_order)

        self._emit(closure, target_gen_dir, commit_change,
                   max_workers=bounded_pool_size(self.pool_factor))
        if commit_change:
            self._run_hooks(closure)
        return closure

    def _prime_specs(self, resolved: ModuleMap):
        """
        Compute the spec of every instance without writing files.

        Instances whose IDL file is missing are dropped, and so is every
        instance depending on a dropped one. Instances whose generator cannot
        compute a spec on its own are generated in memory and returned in
        `forced` so that they are always rebuilt.
        """
        working: ModuleMap = {}
        dropped: Set[ModuleInstance] = set()
        forced: Set[ModuleInstance] = set()

        for class_name in self.system.class_order:
            candidates = []
            for instance in resolved.get(class_name, []):
                blocked = _first_dropped_dependency(instance, dropped)
                if blocked is not None:
                    logger.warning(
                        "Skipping %s: it depends on %s which was dropped", instance, blocked
                    )
                    dropped.add(instance)
                    continue
                candidates.append(instance)

            outcomes = run_parallel(lambda instance: self._prime_instance(instance, forced), candidates)
            failures = []
            for instance, _, error in outcomes:
                if error is None:
                    continue
                if isinstance(error, CodegenError) and is_skip_codegen(error):
                    logger.warning("Dropping %s from this build: %s", instance, error)
                    dropped.add(instance)
                else:
                    failures.append((instance, error))
            if failures:
                for instance, error in failures[1:]:
                    logger.error("Additional failure computing spec for %s: %s", instance, error)
                instance, error = failures[0]
                if isinstance(error, CodegenError):
                    raise error.wrap(
                        f"Error computing spec for {instance.class_name} "
                        f"{instance.instance_name} in {instance.directory}"
                    ) from error
                raise error

            kept = []
            for instance in sort_dependency_list(
                [item for item in candidates if item not in dropped], _peer_depends
            ):
                blocked = _first_dropped_dependency(instance, dropped)
                if blocked is not None:
                    logger.warning(
                        "Skipping %s: it depends on %s which was dropped", instance, blocked
                    )
                    dropped.add(instance)
                    continue
                kept.append(instance)
            working[class_name] = sorted(kept, key=lambda item: item.instance_name)
        return working, forced

    def _prime_instance(self, instance: ModuleInstance, forced: Set[ModuleInstance]) -> None:
        generator = self.system.registry.lookup(instance.class_name, instance.class_type)
        if generator is None:
            return
        if provides_spec(generator):
            instance.generated_spec = generator.compute_spec(instance)
            return
        logger.debug("Generator for %s has no compute_spec; generating in memory", instance)
        instance.generated_spec = generator.generate(instance).spec
        forced.add(instance)

    def _closure(self, working: ModuleMap, changed: List[ModuleDependency],
                 forced: Set[ModuleInstance]) -> ModuleMap:
        if not changed:
            return {class_name: list(instances) for class_name, instances in working.items()}

        index = {
            instance.key(): instance
            for instances in working.values()
            for instance in instances
        }
        members: Set[ModuleInstance] = set(forced)
        for seed in changed:
            instance = index.get(seed)
            if instance is None:
                logger.warning("Changed module %s is not part of this build", seed)
                continue
            members.add(instance)

        closure: ModuleMap = {}
        for class_name in self.system.class_order:
            selected = []
            for instance in sort_dependency_list(working.get(class_name, []), _peer_depends):
                if instance in members or _depends_on_any(instance, members):
                    members.add(instance)
                    selected.append(instance)
            closure[class_name] = sorted(selected, key=lambda item: item.instance_name)
        return closure

    # ------------------------------------------------------------------
    # Emission

    def _emit(self, modules: ModuleMap, target_gen_dir: str, commit_change: bool,
              max_workers: Optional[int]) -> None:
        total = sum(len(instances) for instances in modules.values())
        self._progress = 0
        for class_name in self.system.class_order:
            instances = modules.get(class_name, [])
            outcomes = run_parallel(
                lambda instance: self._build_instance(instance, target_gen_dir, commit_change, total),
                instances,
                max_workers,
            )
            raise_first(outcomes)

    def _build_instance(self, instance: ModuleInstance, target_gen_dir: str,
                        commit_change: bool, total: int) -> None:
        generator = self.system.registry.lookup(instance.class_name, instance.class_type)
        if generator is None:
            logger.warning(
                'No generator for %s type "%s", skipping %s',
                instance.class_name, instance.class_type, instance.instance_name,
            )
            return

        build_path = Path(target_gen_dir) / instance.directory
        try:
            result = generator.generate(instance)
        except CodegenError as exc:
            raise exc.wrap(
                f"Error generating code for {instance.class_name} {instance.instance_name} "
                f"in {instance.yaml_file_name}"
            ) from exc
        instance.generated_spec = result.spec

        with self._progress_lock:
            self._progress += 1
            position = self._progress
        logger.info(
            "Generating %8s %8s %-20s in %-30s %d/%d",
            instance.class_type, instance.class_name, instance.instance_name,
            build_path, position, total,
        )

        if not commit_change:
            return
        for relative in sorted(result.files):
            self.writer.write(build_path / relative, result.files[relative])

    # ------------------------------------------------------------------
    # Hooks

    def _run_hooks(self, modules: ModuleMap) -> None:
        """
        Run every post generation hook, writing whatever each produced before
        reporting its failures.
        """
        failed = []
        for name, hook in self.system.post_gen_hooks.items():
            result = hook(modules)
            for path in sorted(result.files):
                self.writer.write(path, result.files[path])
            if result.failures:
                for failure in result.failures:
                    logger.error("%s: %s", name, failure)
                failed.append(HookError(name, result.failures))
        if failed:
            raise failed[0]


def _peer_depends(a: ModuleInstance, b: ModuleInstance) -> bool:
    return a.class_name == b.class_name and a.depends_on_instance(b)


def _depends_on_any(instance: ModuleInstance, members: Set[ModuleInstance]) -> bool:
    return any(
        dependency in members
        for dependencies in instance.recursive_dependencies.values()
        for dependency in dependencies
    )


def _first_dropped_dependency(instance: ModuleInstance, dropped: Set[ModuleInstance]):
    for dependencies in instance.recursive_dependencies.values():
        for dependency in dependencies:
            if dependency in dropped:
                return dependency
    return None
