from __future__ import annotations

from typing import Iterable


class SheetMapperError(Exception):
    pass


class FetchError(SheetMapperError):
    """Source document could not be retrieved or parsed into rows."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class MissingCoordinateFieldsError(SheetMapperError):
    """No latitude / longitude column could be resolved for the data."""

    def __init__(
            self,
            found_columns: Iterable[str],
            latitude_candidates: Iterable[str] = (),
            longitude_candidates: Iterable[str] = (),
    ):
        self.found_columns = list(found_columns)
        self.latitude_candidates = list(latitude_candidates)
        self.longitude_candidates = list(longitude_candidates)
        message = (
            f'Required coordinate fields not found. '
            f'Looking for one of [{", ".join(self.latitude_candidates)}] '
            f'and one of [{", ".join(self.longitude_candidates)}]. '
            f'Found fields: {", ".join(self.found_columns)}'
        )
        super().__init__(message)


class NoValidRowsError(SheetMapperError):
    def __init__(self, total_row_count: int, invalid_row_count: int | None = None):
        self.total_row_count = total_row_count
        self.invalid_row_count = total_row_count if invalid_row_count is None else invalid_row_count
        super().__init__(
            f'No valid coordinates found in the data '
            f'({self.invalid_row_count} of {self.total_row_count} rows invalid)'
        )
