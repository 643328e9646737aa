"""
Metric Normalizer

Convert diverse metric outputs to the canonical tuple of Metric triples.

Supports:
- Iterable of metric sources: anything exposing name / value / direction
- Dict: name -> number, or name -> {'value': ..., 'direction': ...}
- DataFrame: one row per metric, columns name, value and optionally direction
- Series: values indexed by metric name
- CSV: a file with the DataFrame layout (load_csv)

Values must be finite numbers (numpy scalars included). Anything else raises
InvalidMetricError; nothing is silently dropped.
"""

import pandas as pd
import numpy as np
from typing import Any, Iterable, Optional, Tuple

from .exceptions import InvalidMetricError
from .metrics import Direction, Metric, coerce_value

NAME_COLUMN = 'name'
VALUE_COLUMN = 'value'
DIRECTION_COLUMN = 'direction'


def _missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


class MetricNormalizer:
    """Convert metric output to Metric triples ready for comparison."""

    def normalize(self, source: Any, default_direction: Any = None) -> Tuple[Metric, ...]:
        """
        Convert a metric source to canonical form.

        Args:
            source: Iterable of metric sources, dict, DataFrame or Series
            default_direction: Direction for entries that declare none (None keeps them undirected)

        Returns:
            Tuple of Metric, in the order the source lists them
        """
        fallback = self._parse_direction('<default>', default_direction)

        if source is None:
            raise InvalidMetricError('<source>', 'metric source cannot be None')

        # DATAFRAME: one row per metric
        if isinstance(source, pd.DataFrame):
            return self._from_frame(source, fallback)

        # SERIES: index is the metric name
        if isinstance(source, pd.Series):
            return tuple(
                self._build(str(name), value, None, fallback) for name, value in source.items()
            )

        # DICT: name -> value or name -> {value, direction}
        if isinstance(source, dict):
            return tuple(self._from_mapping_entry(name, entry, fallback) for name, entry in source.items())

        if isinstance(source, (str, bytes)):
            raise InvalidMetricError('<source>', f'unsupported metric source: {type(source).__name__}')

        # ITERABLE of metric sources
        try:
            items = iter(source)
        except TypeError:
            raise InvalidMetricError(
                '<source>', f'unsupported metric source: {type(source).__name__}'
            ) from None
        return tuple(self._from_object(item, fallback) for item in items)

    def load_csv(self, path: str, default_direction: Any = None) -> Tuple[Metric, ...]:
        """Read metrics from a CSV with name,value[,direction] columns."""
        try:
            frame = pd.read_csv(path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise InvalidMetricError('<csv>', f'could not read {path}: {e}') from e
        return self.normalize(frame, default_direction)

    def to_frame(self, metrics: Iterable[Metric]) -> pd.DataFrame:
        """Inverse of the DataFrame layout, handy for reports."""
        rows = [m.to_dict() for m in metrics]
        return pd.DataFrame(rows, columns=[NAME_COLUMN, VALUE_COLUMN, DIRECTION_COLUMN])

    def _from_frame(self, frame: pd.DataFrame, fallback: Optional[Direction]) -> Tuple[Metric, ...]:
        if len(frame) == 0:
            raise InvalidMetricError('<frame>', 'empty DataFrame')
        missing = [c for c in (NAME_COLUMN, VALUE_COLUMN) if c not in frame.columns]
        if missing:
            raise InvalidMetricError('<frame>', f'missing columns: {missing}')
        if not pd.api.types.is_numeric_dtype(frame[VALUE_COLUMN]):
            raise InvalidMetricError('<frame>', f"column '{VALUE_COLUMN}' is not numeric")

        has_direction = DIRECTION_COLUMN in frame.columns
        metrics = []
        for row in frame.itertuples(index=False):
            name = getattr(row, NAME_COLUMN)
            direction = getattr(row, DIRECTION_COLUMN) if has_direction else None
            metrics.append(self._build(name, getattr(row, VALUE_COLUMN), direction, fallback))
        return tuple(metrics)

    def _from_mapping_entry(self, name: Any, entry: Any, fallback: Optional[Direction]) -> Metric:
        if isinstance(entry, dict):
            if VALUE_COLUMN not in entry:
                raise InvalidMetricError(name, "entry has no 'value'")
            return self._build(name, entry[VALUE_COLUMN], entry.get(DIRECTION_COLUMN), fallback)
        return self._build(name, entry, None, fallback)

    def _from_object(self, item: Any, fallback: Optional[Direction]) -> Metric:
        if isinstance(item, Metric) and (item.direction is not None or fallback is None):
            return item
        if not hasattr(item, 'name') or not hasattr(item, 'value'):
            raise InvalidMetricError(
                getattr(item, 'name', repr(item)), "metric source must expose 'name' and 'value'"
            )
        return self._build(item.name, item.value, getattr(item, 'direction', None), fallback)

    def _build(self, name: Any, value: Any, direction: Any, fallback: Optional[Direction]) -> Metric:
        if _missing(name) or not str(name).strip():
            raise InvalidMetricError(name, 'metric name cannot be empty')
        name = str(name).strip()
        if isinstance(value, np.generic) and not isinstance(value, np.bool_):
            value = value.item()
        value = coerce_value(name, value)
        resolved = None if _missing(direction) else self._parse_direction(name, direction)
        return Metric(name, value, resolved or fallback)

    @staticmethod
    def _parse_direction(name: Any, direction: Any) -> Optional[Direction]:
        try:
            return Direction.parse(direction)
        except ValueError as e:
            raise InvalidMetricError(name, str(e)) from e


def normalize_metrics(source: Any, default_direction: Any = None) -> Tuple[Metric, ...]:
    return MetricNormalizer().normalize(source, default_direction)
