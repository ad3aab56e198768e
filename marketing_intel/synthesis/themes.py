"""Theme registry - loads the theme -> keyword table from YAML."""

import logging
from pathlib import Path
from typing import Optional

import yaml

from .schemas import ThemeDefinition

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = Path(__file__).parent / "definitions"


class ThemeRegistry:
    """Serves theme definitions in file order.

    Definitions come from `definitions/themes.yaml` unless a different file
    or an explicit list is supplied.
    """

    def __init__(
        self,
        definitions_file: Optional[Path] = None,
        definitions: Optional[list[ThemeDefinition]] = None,
    ):
        self.definitions_file = definitions_file or DEFINITIONS_DIR / "themes.yaml"
        self._themes: list[ThemeDefinition] = []
        if definitions is not None:
            self._themes = list(definitions)
        else:
            self._load_themes()

    def _load_themes(self) -> None:
        """Load themes from the YAML file."""
        if not self.definitions_file.exists():
            logger.warning(f"Themes file not found: {self.definitions_file}")
            return

        with open(self.definitions_file) as f:
            data = yaml.safe_load(f) or {}

        for theme_data in data.get("themes", []):
            try:
                self._themes.append(ThemeDefinition(**theme_data))
            except Exception as e:
                logger.error(f"Failed to load theme {theme_data!r}: {e}")

        logger.debug(f"Loaded {len(self._themes)} themes from {self.definitions_file}")

    def get(self, theme: str) -> Optional[ThemeDefinition]:
        for definition in self._themes:
            if definition.theme == theme:
                return definition
        return None

    def list_all(self) -> list[ThemeDefinition]:
        return list(self._themes)

    def count(self) -> int:
        return len(self._themes)
