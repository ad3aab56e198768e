"""Module registry - maps module names to module instances.

Registries are plain caller-owned objects: build one at process start,
register modules, then hand it to an orchestrator. There is no global
instance, so tests can create isolated registries freely.
"""

import logging
from typing import Optional, Union

from .base import AnalysisModule
from .schemas import ModuleCategory

logger = logging.getLogger(__name__)


class UnknownScopeError(ValueError):
    """Requested module name or category is not registered."""


class ModuleRegistry:
    """Ordered registry of analysis modules keyed by metadata name.

    Registration order is preserved; it is the order in which the planner
    considers modules when a run covers the whole registry.
    """

    def __init__(self, modules: Optional[list[AnalysisModule]] = None):
        self._modules: dict[str, AnalysisModule] = {}
        for module in modules or []:
            self.register(module)

    def register(self, module: AnalysisModule) -> None:
        """Register a module, replacing any module with the same name."""
        name = module.metadata.name
        if name in self._modules:
            logger.warning(f"Replacing registered module: {name}")
        self._modules[name] = module
        logger.info(f"Registered module: {name} ({module.metadata.category.value})")

    def get(self, name: str) -> Optional[AnalysisModule]:
        """Get a module by name, or None if not registered."""
        return self._modules.get(name)

    def get_validated(self, name: str) -> AnalysisModule:
        """Get a module by name, raising if not found."""
        module = self.get(name)
        if module is None:
            available = list(self._modules.keys())[:10]
            raise UnknownScopeError(
                f"Module not found: {name}. Available (first 10): {available}"
            )
        return module

    def list_all(self) -> list[AnalysisModule]:
        """List all modules in registration order."""
        return list(self._modules.values())

    def list_keys(self) -> list[str]:
        return list(self._modules.keys())

    def list_by_category(self, category: Union[ModuleCategory, str]) -> list[AnalysisModule]:
        """List modules in a capability category.

        Raises:
            UnknownScopeError: If `category` is not a known category value
        """
        try:
            category = ModuleCategory(category)
        except ValueError as e:
            valid = [c.value for c in ModuleCategory]
            raise UnknownScopeError(
                f"Unknown module category: {category!r}. Expected one of {valid}"
            ) from e
        return [m for m in self._modules.values() if m.metadata.category == category]

    def count(self) -> int:
        return len(self._modules)

    def __contains__(self, name: str) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)
