from sheetmapper.config import ConverterConfig, ViewerOptions
from sheetmapper.conversion import SheetToGeoJSONConverter
from sheetmapper.enums import CompassOctant, FieldType, LoadStatus, RowNumbering
from sheetmapper.exceptions import FetchError, MissingCoordinateFieldsError, NoValidRowsError, SheetMapperError
from sheetmapper.features import FeatureCollection, FeatureCollectionMetadata, GeoFeature, InvalidRow
from sheetmapper.filtering import FilterProximityEngine, ProximityListing
from sheetmapper.io import SheetSource, export_geojson, read_geojson
from sheetmapper.session import LoadOutcome, SheetMapSession
from sheetmapper.state import FeatureStateCoordinator, RenderLayer

__version__ = '0.1.0'

__all__ = [
    'ConverterConfig',
    'ViewerOptions',
    'SheetToGeoJSONConverter',
    'CompassOctant',
    'FieldType',
    'LoadStatus',
    'RowNumbering',
    'FetchError',
    'MissingCoordinateFieldsError',
    'NoValidRowsError',
    'SheetMapperError',
    'FeatureCollection',
    'FeatureCollectionMetadata',
    'GeoFeature',
    'InvalidRow',
    'FilterProximityEngine',
    'ProximityListing',
    'SheetSource',
    'export_geojson',
    'read_geojson',
    'LoadOutcome',
    'SheetMapSession',
    'FeatureStateCoordinator',
    'RenderLayer',
]
