"""Per-workspace session state: settings, root discovery and caches."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Optional

from .debounce import VALIDATION_DELAY
from .indexer import Indexer, SymbolIndex
from .messages import set_locale
from .resolver import RootCache, find_workspace_root

log = logging.getLogger(__name__)

# Client setting names -> Settings attributes
_SETTING_KEYS = {
    'validateNonAscii': 'validate_non_ascii',
    'separateBeforeBlocks': 'separate_before_blocks',
    'separateAfterBlocks': 'separate_after_blocks',
    'locale': 'locale',
}


@dataclass
class Settings:
    validate_non_ascii: bool = True
    separate_before_blocks: bool = False
    separate_after_blocks: bool = False
    locale: str = 'en'
    validation_delay: float = VALIDATION_DELAY

    def update(self, values: Optional[dict[str, Any]]) -> None:
        """Apply client settings given in camelCase or snake_case."""
        if not values:
            return
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            attr = _SETTING_KEYS.get(key, key)
            if attr not in known or value is None:
                continue
            setattr(self, attr, value)
        if 'locale' in values and values['locale']:
            self.locale = set_locale(values['locale'])
        log.info('Settings updated: %s', self)


class Session:
    """Everything tied to one workspace root.

    Changing the root drops the symbol index and the root-discovery cache.
    """

    def __init__(self) -> None:
        self.indexer = Indexer()
        self.settings = Settings()
        self.root: Optional[str] = None
        self.root_cache = RootCache()
        # Set once the whole workspace has been indexed
        self.workspace_ready = False

    @property
    def index(self) -> SymbolIndex:
        return self.indexer.index

    def set_root(self, root: Optional[str]) -> None:
        if root == self.root:
            return
        self.clear_on_root_change()
        self.root = root
        log.info('Workspace root: %s', root)

    def clear_on_root_change(self) -> None:
        self.root_cache.clear()
        self.index.clear()
        self.workspace_ready = False

    def ensure_root(self, filepath: str) -> Optional[str]:
        """Discover the root from a file when the client gave none."""
        if self.root is None:
            directory = os.path.dirname(os.path.abspath(filepath))
            self.set_root(find_workspace_root(directory, self.root_cache))
        return self.root

    def index_workspace(self) -> None:
        if self.root:
            self.indexer.index_workspace(self.root)
        self.workspace_ready = True
