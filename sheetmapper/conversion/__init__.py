from sheetmapper.conversion.converter import SheetToGeoJSONConverter
from sheetmapper.conversion.row_validation import CoordinateFieldResolver, CoordinateFields, validate_coordinates
from sheetmapper.conversion.type_inference import (
    infer_field_type,
    infer_field_types,
    coerce_value,
    coerce_row,
)

__all__ = [
    'SheetToGeoJSONConverter',
    'CoordinateFieldResolver',
    'CoordinateFields',
    'validate_coordinates',
    'infer_field_type',
    'infer_field_types',
    'coerce_value',
    'coerce_row',
]
