from __future__ import annotations
from typing import TypeVar, Union, TYPE_CHECKING


if TYPE_CHECKING:
    from sheetmapper.config import BaseConfig

FeatureId = Union[int, str]
RawValue = Union[str, int, float, bool, None]

ConfigType = TypeVar('ConfigType', bound='BaseConfig')
