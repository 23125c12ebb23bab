"""Catalog definition resolution.

A scheme can be defined globally (catalogs/<scheme>.json) and overridden per
composer (composers/<slug>.json, under "catalogs"). The override wins field
by field; pattern, sort_keys and canonical_format fall back to the global
definition when the override leaves them unset.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from .exceptions import DocumentError
from .models import CatalogDefinition
from .store.loader import CATALOGS_DIR, COMPOSERS_DIR, load_composer, load_json
from .store.parser import parse_catalog_definition

logger = logging.getLogger(__name__)


def _composer_definition(data_dir: Path, scheme: str, composer: str) -> CatalogDefinition | None:
    path = data_dir / COMPOSERS_DIR / f"{composer}.json"
    if not path.exists():
        return None
    try:
        record = load_composer(path)
    except DocumentError as e:
        logger.debug(f"Ignoring composer definition: {e}")
        return None
    return (record.catalogs or {}).get(scheme)


def _global_definition(data_dir: Path, scheme: str) -> CatalogDefinition | None:
    path = data_dir / CATALOGS_DIR / f"{scheme}.json"
    if not path.exists():
        return None
    try:
        return parse_catalog_definition(load_json(path))
    except DocumentError as e:
        logger.debug(f"Ignoring catalog definition {path}: {e}")
        return None


def load_catalog_def(
    data_dir: Path,
    scheme: str,
    composer: str | None = None,
) -> CatalogDefinition | None:
    """Resolve the effective definition for a scheme.

    Args:
        data_dir: Data root containing composers/ and catalogs/
        scheme: Scheme name, e.g. "bwv"
        composer: Composer slug whose override should be consulted

    Returns:
        The merged definition, or None when neither source defines the scheme
    """
    data_dir = Path(data_dir)
    composer_def = _composer_definition(data_dir, scheme, composer) if composer else None
    global_def = _global_definition(data_dir, scheme)

    if composer_def is not None and global_def is not None:
        return replace(
            composer_def,
            pattern=composer_def.pattern if composer_def.pattern is not None else global_def.pattern,
            sort_keys=composer_def.sort_keys if composer_def.sort_keys is not None else global_def.sort_keys,
            canonical_format=(
                composer_def.canonical_format
                if composer_def.canonical_format is not None
                else global_def.canonical_format
            ),
        )
    return composer_def or global_def


class DefinitionCache:
    """Caller-owned memo of resolved definitions.

    Lives for one command invocation so range, group and sort operations over
    many numbers read each definition file once. Misses are cached too.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._resolved: dict[tuple[str, str | None], CatalogDefinition | None] = {}

    def get(self, scheme: str, composer: str | None = None) -> CatalogDefinition | None:
        key = (scheme, composer)
        if key not in self._resolved:
            self._resolved[key] = load_catalog_def(self.data_dir, scheme, composer)
        return self._resolved[key]

    def clear(self) -> None:
        self._resolved.clear()

    def __len__(self) -> int:
        return len(self._resolved)
