"""Import provider modules from files and instantiate their provider classes."""

from __future__ import annotations

import importlib.util
import inspect
import sys
import traceback
from pathlib import Path
from types import ModuleType
from typing import Any

import structlog

from mediagate.domain.providers import DiscoveryLoadError, ProviderProtocol

log = structlog.get_logger(__name__)

_REQUIRED_METHODS = ("get_movie_sources", "get_tv_sources", "health_check")


def iter_provider_files(directory: Path) -> list[Path]:
    """``*.py`` files in *directory*, sorted by name, ``_``-prefixed skipped."""
    return [
        path
        for path in sorted(directory.iterdir(), key=lambda p: p.name)
        if path.is_file() and path.suffix == ".py" and not path.name.startswith("_")
    ]


def _import_module_from_path(path: Path) -> ModuleType:
    module_name = f"mediagate_dynamic_provider_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, str(path))
    if spec is None or spec.loader is None:
        raise DiscoveryLoadError(f"Could not create import spec for {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except SyntaxError as e:
        sys.modules.pop(module_name, None)
        tb = traceback.format_exc()
        raise DiscoveryLoadError(f"SyntaxError while importing {path}:\n{tb}") from e
    except Exception as e:
        sys.modules.pop(module_name, None)
        tb = traceback.format_exc()
        raise DiscoveryLoadError(f"Error while importing {path}:\n{tb}") from e

    return module


def is_provider_class(obj: Any, module: ModuleType) -> bool:
    """True for public classes defined in *module* that look like providers.

    Base classes imported into the module are excluded because their
    ``__module__`` differs; so are classes without a non-empty string ``id``.
    """
    if not inspect.isclass(obj) or inspect.isabstract(obj):
        return False
    if obj.__module__ != module.__name__ or obj.__name__.startswith("_"):
        return False
    provider_id = getattr(obj, "id", None)
    if not isinstance(provider_id, str) or not provider_id:
        return False
    return all(callable(getattr(obj, name, None)) for name in _REQUIRED_METHODS)


def load_provider_classes(path: Path) -> tuple[ModuleType, list[type]]:
    """Import *path* and return its provider classes in definition order."""
    module = _import_module_from_path(path)
    classes = [
        obj for _, obj in vars(module).items() if is_provider_class(obj, module)
    ]
    if not classes:
        log.warning("provider_module_empty", provider_file=str(path))
    return module, classes


def instantiate_provider(cls: type, *args: Any) -> ProviderProtocol:
    """Instantiate *cls* and verify the instance satisfies the contract."""
    try:
        provider = cls(*args)
    except Exception as e:
        raise DiscoveryLoadError(
            f"Could not instantiate provider class {cls.__name__}: {e}"
        ) from e

    if not isinstance(provider, ProviderProtocol):
        raise DiscoveryLoadError(
            f"{cls.__name__} does not satisfy the provider contract"
        )
    if not isinstance(provider.name, str) or not provider.name:
        raise DiscoveryLoadError(f"{cls.__name__} must have a non-empty 'name'")
    return provider
