from __future__ import annotations

from enum import Enum


class FieldType(Enum):
    """
    Column type inferred once per spreadsheet column from all of its non-empty values.

    The checks are applied in declaration order and are unanimous: a column is
    only NUMBER if every non-empty value is a finite number, only BOOLEAN if every
    value reads "true"/"false", and so on. Anything mixed falls through to STRING.
    """

    NUMBER = 'number'
    BOOLEAN = 'boolean'
    DATE = 'date'
    STRING = 'string'


class RowNumbering(Enum):
    """How the synthetic ``row_number`` identifier is assigned during conversion."""

    SHEET_ROW = 'sheet_row'  # spreadsheet row, header is row 1, first data row is 2
    SEQUENCE = 'sequence'  # 0-based position among the valid rows


class FeatureStateFlag(Enum):
    HOVER = 'hover'
    SELECTED = 'selected'


class CompassOctant(Enum):
    N = 'N'
    NE = 'NE'
    E = 'E'
    SE = 'SE'
    S = 'S'
    SW = 'SW'
    W = 'W'
    NW = 'NW'
    AT_LOCATION = 'AT_LOCATION'

    @property
    def arrow(self) -> str:
        return _OCTANT_ARROWS[self]


_OCTANT_ARROWS = {
    CompassOctant.N: '↑',
    CompassOctant.NE: '↗',
    CompassOctant.E: '→',
    CompassOctant.SE: '↘',
    CompassOctant.S: '↓',
    CompassOctant.SW: '↙',
    CompassOctant.W: '←',
    CompassOctant.NW: '↖',
    CompassOctant.AT_LOCATION: '•',
}


class LoadStatus(Enum):
    LOADED = 'loaded'
    FAILED = 'failed'
    STALE = 'stale'  # superseded by a newer load before it finished
