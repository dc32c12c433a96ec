"""Bundled seed data."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from app.domain.watering.entities import Species

logger = logging.getLogger(__name__)

SPECIES_CATALOG_PATH = Path(__file__).parent / "plant_species_catalog.json"


def load_species_catalog(path: Path = SPECIES_CATALOG_PATH) -> list[Species]:
    """Load the bundled species catalog, skipping malformed entries."""
    try:
        entries = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Unable to load species catalog %s: %s", path, exc)
        return []

    catalog: list[Species] = []
    for entry in entries:
        try:
            catalog.append(Species.from_dict(entry))
        except (KeyError, ValueError) as exc:
            logger.warning("Skipping invalid catalog entry %r: %s", entry, exc)
    return catalog
