"""Conversion of spreadsheet rows into a GeoJSON-like FeatureCollection.

The converter is the single producer of FeatureCollection objects. It
    - resolves the latitude / longitude columns,
    - infers one FieldType per column from all rows (valid and invalid),
    - splits rows into valid features and invalid rows,
    - coerces the values of valid rows and injects the row_number identifier.

Conversion is a pure function of its input: rows are never mutated, the row
order is preserved and the same input always yields the same output.
"""
from __future__ import annotations

from typing import Iterable

import pandas as pd
from shapely import Point

from sheetmapper.config import ConverterConfig, ROW_NUMBER_FIELD
from sheetmapper.conversion.row_validation import CoordinateFieldResolver, validate_coordinates
from sheetmapper.conversion.type_inference import infer_field_types, coerce_row
from sheetmapper.enums import FieldType, RowNumbering
from sheetmapper.exceptions import NoValidRowsError
from sheetmapper.features import FeatureCollection, FeatureCollectionMetadata, GeoFeature, InvalidRow
from sheetmapper.typevars import RawValue
from sheetmapper.utils.logging import get_logger

logger = get_logger(__name__)

SHEET_HEADER_ROW_OFFSET = 2


class SheetToGeoJSONConverter:
    """
    Converts raw spreadsheet rows into a FeatureCollection with typed properties.

    Args:
        config: Converter settings; defaults to designated 'Latitude' / 'Longitude'
            columns and spreadsheet row numbering.

    Example:

        >>> converter = SheetToGeoJSONConverter()
        >>> collection = converter.convert([
        ...     {'Latitude': '18.5', 'Longitude': '73.8', 'Name': 'A'},
        ...     {'Latitude': '91', 'Longitude': '73.8', 'Name': 'B'},
        ... ])
        >>> len(collection), collection.metadata.invalid_row_count
        (1, 1)
        >>> collection.features[0].properties
        {'Latitude': 18.5, 'Longitude': 73.8, 'Name': 'A', 'row_number': 2}
    """

    def __init__(self, config: ConverterConfig | None = None):
        self.config = config or ConverterConfig()
        self._field_resolver = CoordinateFieldResolver(self.config)

    def convert(self, raw_rows: Iterable[dict[str, RawValue]]) -> FeatureCollection:
        """
        Convert rows to a FeatureCollection.

        Args:
            raw_rows: Rows in spreadsheet order, keyed by column name. The column
                set is taken from the first row.

        Returns:
            FeatureCollection with one GeoFeature per valid row.

        Raises:
            MissingCoordinateFieldsError: If the coordinate columns cannot be resolved.
            NoValidRowsError: If no row has valid coordinates (including empty input).
        """
        rows = list(raw_rows)
        if not rows:
            raise NoValidRowsError(total_row_count=0)

        coordinate_fields = self._field_resolver.resolve(list(rows[0].keys()))
        logger.info(
            f'Converting {len(rows)} rows using coordinate fields '
            f'{coordinate_fields.latitude!r} and {coordinate_fields.longitude!r}'
        )

        field_types = infer_field_types(rows)
        if ROW_NUMBER_FIELD in field_types:
            logger.warning(f'Column {ROW_NUMBER_FIELD!r} is overwritten by the generated row identifier')
            field_types[ROW_NUMBER_FIELD] = FieldType.NUMBER

        features: list[GeoFeature] = []
        invalid_rows: list[InvalidRow] = []
        for index, row in enumerate(rows):
            coordinates, reason = validate_coordinates(row, coordinate_fields)
            if coordinates is None:
                invalid_rows.append(InvalidRow(row=dict(row), row_index=index, reason=reason))
                logger.debug(f'Row {index + SHEET_HEADER_ROW_OFFSET} is invalid: {reason}')
                continue

            properties = coerce_row(row, field_types)
            properties[ROW_NUMBER_FIELD] = self._row_number(index, len(features))
            features.append(GeoFeature(geometry=Point(*coordinates), properties=properties))

        if not features:
            raise NoValidRowsError(total_row_count=len(rows), invalid_row_count=len(invalid_rows))

        metadata = FeatureCollectionMetadata(
            field_types=field_types,
            invalid_rows=tuple(invalid_rows),
            total_row_count=len(rows),
            valid_row_count=len(features),
        )
        logger.info(f'Converted {len(features)} of {len(rows)} rows ({len(invalid_rows)} invalid)')
        type_names = {k: v.value for k, v in field_types.items()}
        logger.debug(f'Field types: {type_names}')
        return FeatureCollection(features=tuple(features), metadata=metadata)

    def convert_dataframe(self, df: pd.DataFrame) -> FeatureCollection:
        """Convert a DataFrame whose columns are the spreadsheet header; missing values become empty cells."""
        records = df.astype(object).where(df.notna(), None).to_dict(orient='records')
        return self.convert(records)

    def _row_number(self, row_index: int, valid_index: int) -> int:
        if self.config.row_numbering == RowNumbering.SEQUENCE:
            return valid_index
        return row_index + SHEET_HEADER_ROW_OFFSET
