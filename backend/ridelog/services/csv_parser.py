"""
Recorder CSV adapter.

Parses telemetry CSV exported by the board's logger (or uploaded from the
browser) into RawTelemetry. GPX conversion happens in
ridelog.services.gpx_builder.
"""

import csv
import io
import logging
from typing import Optional, Union

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ridelog.models.raw import MAX_TIMESTAMP, MIN_TIMESTAMP, RawTelemetry
from ridelog.services.errors import ParseError


logger = logging.getLogger(__name__)


# Column name mappings - loggers and spreadsheet exports vary in naming
COLUMN_MAPPINGS = {
    "latitude": ["latitude", "lat"],
    "longitude": ["longitude", "lon", "lng", "long"],
    "timestamp": ["timestamp", "time", "epoch"],
    "altitude": ["altitude", "alt", "elevation", "ele"],
    "speed": ["speed"],
    "voltage": ["voltage", "volts", "battery_voltage"],
    "current": ["current", "amps", "motor_current"],
    "used_energy": ["used_energy", "energy", "energy_used", "wh_used"],
    "trip_distance": ["trip_distance", "distance", "odometer"],
}

REQUIRED_COLUMNS = ("latitude", "longitude")

# Cell contents treated as a missing value
MISSING_MARKERS = {"", "nan", "null"}


class TelemetryCsvParser:
    """Parser for recorder telemetry CSV text."""

    def parse_text(self, content: Union[str, bytes], name: str = "ride") -> RawTelemetry:
        text = self._decode(content)
        df, line_numbers = self._read_csv(text)
        col_map = self._map_columns(df.columns.tolist())

        for std_name in REQUIRED_COLUMNS:
            if col_map[std_name] is None:
                raise ParseError(f"CSV header has no {std_name} column")

        columns = {
            std_name: self._extract_column(df, col_map, std_name, line_numbers)
            for std_name in COLUMN_MAPPINGS
        }

        for std_name in REQUIRED_COLUMNS:
            missing = np.isnan(columns[std_name])
            if np.any(missing):
                line = line_numbers[int(np.argmax(missing))]
                raise ParseError(f"Line {line}: {std_name} is required")

        timestamps = columns["timestamp"]
        out_of_range = (timestamps < MIN_TIMESTAMP) | (timestamps > MAX_TIMESTAMP)
        if np.any(out_of_range):
            idx = int(np.argmax(out_of_range))
            raise ParseError(
                f"Line {line_numbers[idx]}: timestamp out of range: {float(timestamps[idx])!r} "
                f"(expected epoch seconds)"
            )

        logger.debug(f"Parsed {len(df)} telemetry rows from {name}")

        return RawTelemetry(
            source="csv",
            name=name,
            latitude=columns["latitude"],
            longitude=columns["longitude"],
            timestamps=columns["timestamp"],
            altitude=columns["altitude"],
            speed=columns["speed"],
            voltage=columns["voltage"],
            current=columns["current"],
            used_energy=columns["used_energy"],
            trip_distance=columns["trip_distance"],
        )

    def _decode(self, content: Union[str, bytes]) -> str:
        if isinstance(content, str):
            return content.lstrip("\ufeff")
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"CSV is not valid UTF-8: {e}") from e

    def _read_csv(self, text: str) -> tuple[pd.DataFrame, list[int]]:
        """
        Tokenize CSV text into a string DataFrame.

        Returns the frame and, for each data row, its 1-based line number.
        Rows whose field count differs from the header are rejected.
        """
        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        header: Optional[list[str]] = None
        records: list[list[str]] = []
        line_numbers: list[int] = []

        try:
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                if header is None:
                    header = [cell.strip() for cell in row]
                    self._check_unique(header, reader.line_num)
                    continue
                if len(row) != len(header):
                    raise ParseError(
                        f"Line {reader.line_num}: expected {len(header)} fields, found {len(row)}"
                    )
                records.append(row)
                line_numbers.append(reader.line_num)
        except csv.Error as e:
            raise ParseError(f"Line {reader.line_num}: {e}") from e

        if header is None:
            raise ParseError("CSV is empty")

        return pd.DataFrame(records, columns=header, dtype=str), line_numbers

    def _check_unique(self, header: list[str], line: int) -> None:
        seen: set[str] = set()
        for name in header:
            key = name.lower()
            if key and key in seen:
                raise ParseError(f"Line {line}: duplicate column {name!r}")
            seen.add(key)

    def _map_columns(self, columns: list[str]) -> dict[str, Optional[str]]:
        by_lower = {c.lower(): c for c in columns}
        col_map: dict[str, Optional[str]] = {}
        for std_name, variants in COLUMN_MAPPINGS.items():
            col_map[std_name] = None
            for variant in variants:
                if variant in by_lower:
                    col_map[std_name] = by_lower[variant]
                    break
        return col_map

    def _extract_column(
        self,
        df: pd.DataFrame,
        col_map: dict[str, Optional[str]],
        std_name: str,
        line_numbers: list[int],
    ) -> NDArray[np.float64]:
        col = col_map.get(std_name)
        if col is None or col not in df.columns:
            return np.full(len(df), np.nan, dtype=np.float64)

        cells = df[col].astype(str).str.strip()
        missing = cells.str.lower().isin(MISSING_MARKERS).values
        values = pd.to_numeric(cells.where(~missing), errors="coerce").values.astype(np.float64)

        bad = ~np.isfinite(values) & ~missing
        if np.any(bad):
            idx = int(np.argmax(bad))
            raise ParseError(
                f"Line {line_numbers[idx]}: {col} is not a number: {cells.iloc[idx]!r}"
            )
        return values


def parse_telemetry_csv(content: Union[str, bytes], name: str = "ride") -> RawTelemetry:
    """
    Parse recorder CSV text (or bytes) into RawTelemetry.

    Raises:
        ParseError: on malformed CSV or missing position data
    """
    return TelemetryCsvParser().parse_text(content, name)
