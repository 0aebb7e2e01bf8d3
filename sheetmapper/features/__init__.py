from sheetmapper.features.feature_collection import (
    FeatureCollection,
    FeatureCollectionMetadata,
    GeoFeature,
    InvalidRow,
)

__all__ = [
    'FeatureCollection',
    'FeatureCollectionMetadata',
    'GeoFeature',
    'InvalidRow',
]
