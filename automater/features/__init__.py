"""Feature registry.

Maps feature names to their applicators and validates a requested
selection before anything touches the filesystem.

Quick usage::

    from automater.features import FeatureContext, resolve_features

    for feature in resolve_features(["serverHardening", "biome", "mui"]):
        await feature.apply(FeatureContext(project_dir))
"""

from __future__ import annotations

from typing import Any

from automater.errors import FeatureConflict, UnknownFeature
from automater.features.base import Feature, FeatureCategory, FeatureConfig, FeatureContext
from automater.features.biome import Biome
from automater.features.mui import Mui
from automater.features.mui_toolpad import MuiToolpad
from automater.features.server_hardening import ServerHardening
from automater.scaffolder.installer import package_name

FEATURES: dict[str, Feature] = {
    feature.name: feature
    for feature in (ServerHardening(), Biome(), Mui(), MuiToolpad())
}

# Applied by ``create`` before any requested extras.
DEFAULT_FEATURES: tuple[str, ...] = tuple(
    name for name, feature in FEATURES.items() if feature.config.default_enabled
)


def selected_features(extras: tuple[str, ...] | list[str] = ()) -> list[str]:
    """Defaults followed by *extras*, without duplicates."""
    selected: list[str] = []
    for name in (*DEFAULT_FEATURES, *extras):
        if name not in selected:
            selected.append(name)
    return selected


def get_feature(name: str) -> Feature:
    """Look up a registered feature.

    Raises:
        UnknownFeature: If *name* is not registered.
    """
    try:
        return FEATURES[name]
    except KeyError:
        raise UnknownFeature(name, known=list(FEATURES)) from None


def check_conflicts(names: list[str]) -> None:
    """Reject a selection containing two mutually exclusive features.

    Conflicts are declared on either side; declaring them once is enough.

    Raises:
        FeatureConflict: For the first conflicting pair, in selection order.
    """
    for index, name in enumerate(names):
        declared = get_feature(name).config.conflicts
        for other in names[index + 1:]:
            if other in declared or name in get_feature(other).config.conflicts:
                raise FeatureConflict(name, other)


def resolve_features(names: list[str]) -> list[Feature]:
    """Validate *names* and return their applicators in the given order.

    Duplicate names are applied once, at their first position.

    Raises:
        UnknownFeature: If any name is not registered.
        FeatureConflict: If two selected features conflict.
    """
    unique: list[str] = []
    for name in names:
        if name not in unique:
            unique.append(name)

    features = [get_feature(name) for name in unique]
    check_conflicts(unique)
    return features


def applied_features(manifest: dict[str, Any]) -> list[str]:
    """Features whose packages are all listed in a parsed package.json.

    Features that install nothing (``serverHardening``) leave no trace in
    the manifest and are never reported.
    """
    installed = {
        *(manifest.get("dependencies") or {}),
        *(manifest.get("devDependencies") or {}),
    }
    applied = []
    for name, feature in FEATURES.items():
        packages = [
            package_name(spec)
            for spec in (*feature.config.dependencies, *feature.config.dev_dependencies)
        ]
        if packages and all(package in installed for package in packages):
            applied.append(name)
    return applied


__all__ = [
    "DEFAULT_FEATURES",
    "FEATURES",
    "Feature",
    "FeatureCategory",
    "FeatureConfig",
    "FeatureContext",
    "applied_features",
    "check_conflicts",
    "get_feature",
    "resolve_features",
    "selected_features",
]
