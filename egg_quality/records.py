"""
Record schema and ingestion normalization.

Every data source (web endpoint, spreadsheet upload, delimited text, Supabase)
hands a raw DataFrame to normalize_records(), which maps its headers onto the
canonical record columns once, coerces types and sorts by date.
"""
import logging
import re
import unicodedata
from dataclasses import dataclass

import numpy as np
import pandas as pd

from egg_quality.errors import DataSourceError
from egg_quality.standards import METRIC_FIELDS

logger = logging.getLogger(__name__)

CATEGORY_DEFAULTS = {
    "farm": "N/A",
    "shed": "N/A",
    "age": "N/A",
    "breed": "N/A",
    "client": "General",
    "metaqualixId": "N/A",
}

RECORD_COLUMNS = ["date"] + list(CATEGORY_DEFAULTS) + METRIC_FIELDS

# canonical field -> accepted source headers (matched after _header_key)
COLUMN_ALIASES = {
    "date": ["Fecha", "Date", "Fecha de muestreo", "Sample Date"],
    "farm": ["Granja", "Farm"],
    "shed": ["Caseta", "Shed", "House", "Galpon"],
    "age": ["Edad", "Age", "Edad (semanas)", "Age (weeks)"],
    "breed": ["Estirpe", "Breed", "Raza", "Strain"],
    "client": ["Cliente", "Client", "Customer"],
    "metaqualixId": ["Metaqualix", "No. Metaqualix", "MetaqualixId", "Metaqualix ID"],
    "weight": ["Peso", "Weight", "Peso Huevo", "Egg Weight", "Peso (g)"],
    "breakingStrength": ["Resistencia", "Breaking Strength", "BreakingStrength", "Resistencia (kgf)"],
    "shellThickness": ["Espesor", "Shell Thickness", "ShellThickness", "Espesor Cascaron", "Espesor (mm)"],
    "yolkColor": ["Color", "Yolk Color", "YolkColor", "Color Yema"],
    "haughUnits": ["Haugh", "Haugh Units", "HaughUnits", "Unidades Haugh", "UH", "HU"],
}

# Excel stores dates as days since 1899-12-30
EXCEL_EPOCH = "1899-12-30"
EXCEL_SERIAL_RANGE = (1, 2958465)


@dataclass
class IngestResult:
    """Outcome of one ingestion: the records plus what had to be dropped."""

    records: pd.DataFrame
    invalid_dates: int = 0
    source: str = ""

    @property
    def record_count(self) -> int:
        return len(self.records)


def _header_key(header):
    """Lower-case, accent-free, punctuation-free form of a column header."""
    text = unicodedata.normalize("NFKD", str(header))
    text = "".join(c for c in text if not unicodedata.combining(c))
    return re.sub(r"[^a-z0-9]+", " ", text.lower()).strip()


_ALIAS_LOOKUP = {
    _header_key(alias): canonical
    for canonical, aliases in COLUMN_ALIASES.items()
    for alias in aliases + [canonical]
}


def resolve_columns(headers):
    """
    Map canonical record fields to the source headers that carry them.

    The first header matching a field wins; unknown headers are ignored.
    """
    resolved = {}
    for header in headers:
        canonical = _ALIAS_LOOKUP.get(_header_key(header))
        if canonical and canonical not in resolved:
            resolved[canonical] = header
    return resolved


def _date_text(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def parse_dates(values):
    """
    Parse a column of dates into midnight timestamps; unparseable entries become NaT.

    Accepts datetime values, ISO strings (only the YYYY-MM-DD prefix is used),
    dd/mm/yyyy strings and Excel serial day numbers.
    """
    raw = pd.Series(values)
    if pd.api.types.is_datetime64_any_dtype(raw):
        if raw.dt.tz is not None:
            raw = raw.dt.tz_localize(None)
        return raw.dt.normalize()

    parsed = pd.Series(pd.NaT, index=raw.index, dtype="datetime64[ns]")

    numeric = pd.to_numeric(raw, errors="coerce")
    serial = numeric.between(*EXCEL_SERIAL_RANGE)
    if serial.any():
        parsed.loc[serial] = pd.to_datetime(numeric[serial], unit="D", origin=EXCEL_EPOCH)

    text = raw[~serial].map(_date_text).astype(str)
    iso = text.str.match(r"^\d{4}-\d{2}-\d{2}")
    if iso.any():
        parsed.loc[iso[iso].index] = pd.to_datetime(text[iso].str[:10], format="%Y-%m-%d", errors="coerce")

    rest = text[~iso & (text != "")]
    if not rest.empty:
        day_first = pd.to_datetime(rest, format="%d/%m/%Y", errors="coerce")
        leftover = day_first.isna()
        if leftover.any():
            day_first[leftover] = pd.to_datetime(rest[leftover], format="mixed", errors="coerce")
        parsed.loc[rest.index] = day_first

    return parsed.dt.normalize()


def _clean_text(series, default):
    def convert(value):
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return default
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        text = str(value).strip()
        return text or default

    return series.map(convert)


def _clean_number(series):
    """Coerce to float; anything non-numeric becomes NaN, never 0."""
    if series.dtype == object:
        series = series.map(lambda v: v.strip().replace(",", ".") if isinstance(v, str) else v)
    numbers = pd.to_numeric(series, errors="coerce").astype(float)
    return numbers.replace([np.inf, -np.inf], np.nan)


def normalize_records(raw_df, source=""):
    """
    Build the canonical records frame from a raw source frame.

    Raises DataSourceError when no date column can be found. Rows with an
    unparseable date are dropped and counted; missing categorical values take
    their defaults and missing metrics stay NaN.
    """
    if raw_df is None:
        raise DataSourceError("The data source returned no table.")

    columns = resolve_columns(raw_df.columns)
    if "date" not in columns:
        raise DataSourceError(
            f"Missing date column. Expected one of: {', '.join(COLUMN_ALIASES['date'])}."
        )

    records = pd.DataFrame(index=raw_df.index)
    records["date"] = parse_dates(raw_df[columns["date"]])
    for name, default in CATEGORY_DEFAULTS.items():
        if name in columns:
            records[name] = _clean_text(raw_df[columns[name]], default)
        else:
            records[name] = default
    for name in METRIC_FIELDS:
        if name in columns:
            records[name] = _clean_number(raw_df[columns[name]])
        else:
            records[name] = np.nan

    invalid = int(records["date"].isna().sum())
    if invalid:
        logger.warning("Dropped %d row(s) with unparseable dates from %s", invalid, source or "data source")
        records = records[records["date"].notna()]

    records = records.sort_values("date", kind="stable").reset_index(drop=True)
    logger.info("Loaded %d record(s) from %s", len(records), source or "data source")
    return IngestResult(records=records[RECORD_COLUMNS], invalid_dates=invalid, source=source)


def empty_records():
    """An empty frame with the canonical record columns."""
    return normalize_records(pd.DataFrame(columns=["date"])).records
