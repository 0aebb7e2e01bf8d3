from __future__ import annotations

import json
from pathlib import Path

from sheetmapper.config import DEFAULT_EXPORT_FILENAME
from sheetmapper.features import FeatureCollection
from sheetmapper.utils.logging import get_logger

logger = get_logger(__name__)

GEOJSON_SUFFIX = '.geojson'
EXPORT_INDENT = 2


def export_filename(name: str | None = None) -> str:
    """Normalize a download name to the '.geojson' convention, e.g. 'parks' -> 'parks.geojson'."""
    name = (name or DEFAULT_EXPORT_FILENAME).strip()
    if name.lower().endswith(GEOJSON_SUFFIX):
        return name
    if name.lower().endswith('.json'):
        name = name[:-len('.json')]
    return f'{name}{GEOJSON_SUFFIX}'


def dumps_geojson(collection: FeatureCollection) -> str:
    return collection.to_json(indent=EXPORT_INDENT)


def export_geojson(collection: FeatureCollection, path: str | Path, filename: str | None = None) -> Path:
    """
    Write the (possibly filtered) collection as pretty-printed GeoJSON.

    Args:
        collection: Collection to serialize, metadata included.
        path: Target file, or a directory in which ``filename`` is created.
        filename: Name used when path is a directory; defaults to 'map-data.geojson'.

    Returns:
        Path of the written file.
    """
    path = Path(path)
    if path.is_dir():
        path = path / export_filename(filename)
    else:
        path = path.with_name(export_filename(path.name))
    path.write_text(dumps_geojson(collection), encoding='utf-8')
    logger.info(f'Exported {len(collection)} features to {path}')
    return path


def read_geojson(path: str | Path) -> FeatureCollection:
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    return FeatureCollection.from_geojson_dict(data)
