"""Skill loading from the builtin table, pluggy plugins, and a YAML manifest."""

from __future__ import annotations

import importlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pluggy
import yaml
from loguru import logger

from ..errors import SkillLoadError
from ..hookspecs import SWITCHBOARD_HOOK_NAMESPACE, SwitchboardHookSpecs
from .base import Skill
from .registry import SkillRegistry

if TYPE_CHECKING:
    from ..config import Settings

ENTRY_POINT_GROUP = "switchboard"
BUILTIN_PLUGIN_NAME = "builtin"
MANIFEST_SKILLS_KEY = "skills"


@dataclass
class LoadReport:
    """Which skills were built and which references failed."""

    skills: list[Skill] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def create_plugin_manager(*, plugins: Iterable[object] = (), include_entry_points: bool = True) -> pluggy.PluginManager:
    from . import builtin

    manager = pluggy.PluginManager(SWITCHBOARD_HOOK_NAMESPACE)
    manager.add_hookspecs(SwitchboardHookSpecs)
    manager.register(builtin, name=BUILTIN_PLUGIN_NAME)
    if include_entry_points:
        try:
            manager.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.opt(exception=True).error("skill.plugins.entry_points_failed group={}", ENTRY_POINT_GROUP)
    for plugin in plugins:
        manager.register(plugin)
    return manager


def load_skills(
    settings: Settings,
    *,
    plugins: Iterable[object] = (),
    include_entry_points: bool = True,
) -> LoadReport:
    """Collect skills from every source; a failing source never stops the others."""

    report = LoadReport()
    manager = create_plugin_manager(plugins=plugins, include_entry_points=include_entry_points)
    # Builtin first; a later plugin replaces a same-named skill.
    for impl in manager.hook.provide_skills.get_hookimpls():
        plugin_name = impl.plugin_name or "<unknown>"
        try:
            provided = impl.function(**_kwargs_for_impl(impl, {"settings": settings}))
        except Exception as exc:
            report.failed[plugin_name] = str(exc)
            logger.opt(exception=True).warning("skill.plugin.failed plugin={}", plugin_name)
            continue
        for index, item in enumerate(provided or []):
            _collect(report, f"{plugin_name}[{index}]", item)

    if settings.skills_manifest is not None:
        for reference, factory in _manifest_factories(settings.skills_manifest, report):
            _collect(report, reference, factory)
    return report


def build_registry(
    settings: Settings,
    *,
    plugins: Iterable[object] = (),
    include_entry_points: bool = True,
) -> SkillRegistry:
    report = load_skills(settings, plugins=plugins, include_entry_points=include_entry_points)
    registry = SkillRegistry(strict_operation_names=settings.strict_operation_names)
    for skill in report.skills:
        registry.register(skill)
    logger.info("skill.registry.ready skills={} failed={}", len(report.skills), sorted(report.failed))
    return registry


def resolve_reference(reference: str) -> Callable[[], Any]:
    """Resolve `package.module:attribute` to a callable."""

    module_name, separator, attribute = reference.partition(":")
    if not separator or not module_name or not attribute:
        raise SkillLoadError(reference, "expected 'module:attribute'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SkillLoadError(reference, f"import failed: {exc}") from exc
    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise SkillLoadError(reference, f"missing attribute {part!r}") from exc
    if not callable(target):
        raise SkillLoadError(reference, "target is not callable")
    return target  # type: ignore[no-any-return]


def _kwargs_for_impl(impl: Any, kwargs: dict[str, Any]) -> dict[str, Any]:
    return {name: kwargs[name] for name in impl.argnames if name in kwargs}


def _collect(report: LoadReport, reference: str, item: object) -> None:
    try:
        skill = _instantiate(reference, item)
    except Exception as exc:
        report.failed[reference] = str(exc)
        logger.opt(exception=True).warning("skill.load_failed reference={}", reference)
        return
    report.skills.append(skill)


def _instantiate(reference: str, item: object) -> Skill:
    candidate = item
    if isinstance(candidate, type) or (callable(candidate) and not isinstance(candidate, Skill)):
        candidate = candidate()
    if not isinstance(candidate, Skill):
        raise SkillLoadError(reference, f"{type(candidate).__name__} does not implement the skill contract")
    return candidate


def _manifest_factories(path: Path, report: LoadReport) -> list[tuple[str, Callable[[], Any]]]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        report.failed[str(path)] = str(exc)
        logger.error("skill.manifest.unreadable path={} error={}", path, exc)
        return []

    entries = payload.get(MANIFEST_SKILLS_KEY) if isinstance(payload, dict) else None
    if not isinstance(entries, dict):
        report.failed[str(path)] = f"manifest must map '{MANIFEST_SKILLS_KEY}' to id: module:factory"
        logger.error("skill.manifest.invalid path={}", path)
        return []

    factories: list[tuple[str, Callable[[], Any]]] = []
    for skill_id, reference in entries.items():
        label = f"manifest:{skill_id}"
        try:
            factories.append((label, resolve_reference(str(reference))))
        except SkillLoadError as exc:
            report.failed[label] = str(exc)
            logger.warning("skill.manifest.unresolved id={} error={}", skill_id, exc)
    return factories
