"""
Data sources for egg quality records.

Records come from a Google Apps Script web endpoint returning a JSON array,
an uploaded spreadsheet or delimited text file, or a Supabase table. Each
loader returns an IngestResult built by records.normalize_records().
"""
import io
import json
import logging
from pathlib import Path

import pandas as pd
import requests

from egg_quality.errors import DataSourceError
from egg_quality.records import normalize_records

logger = logging.getLogger(__name__)

# pandas reader engine per spreadsheet format
EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}
TEXT_EXTENSIONS = {".csv", ".txt", ".tsv"}

HTML_MARKERS = ("<!DOCTYPE html", "<html", "Google Drive", "Sign in")


# --- Web endpoint ---
def fetch_records_from_url(url, timeout=30):
    """Fetch records from a spreadsheet-backed web endpoint returning a JSON array of rows."""
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.exception("Request to %s failed", url)
        raise DataSourceError(
            "Could not connect to the data source. Possible causes: "
            "1) wrong URL (a Google Apps Script URL must end in /exec), "
            "2) the script is not shared with 'Anyone', "
            f"3) the network is unavailable. ({e})"
        ) from e

    if not response.ok:
        raise DataSourceError(f"HTTP error {response.status_code}")

    return normalize_records(parse_endpoint_payload(response.text), source=url)


def parse_endpoint_payload(text):
    """Turn the endpoint's response body into a raw rows DataFrame."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        if any(marker in text for marker in HTML_MARKERS):
            raise DataSourceError(
                "The URL returned a Google sign-in page instead of JSON data. "
                "Deploy the script with access set to 'Anyone'."
            ) from e
        raise DataSourceError("The response is not valid JSON.") from e

    if isinstance(data, dict) and data.get("error"):
        raise DataSourceError(f"Google Script error: {data['error']}")
    if not isinstance(data, list):
        raise DataSourceError(
            "The data received is not a list of rows. Check that doGet returns a JSON array."
        )
    return pd.DataFrame(data)


# --- File upload ---
def read_uploaded_file(name, content):
    """
    Parse an uploaded spreadsheet (.xlsx/.xls) or delimited text file (.csv/.txt/.tsv).

    Args:
        name: original file name, used to pick the parser
        content: file bytes
    """
    extension = Path(name).suffix.lower()
    try:
        if extension in EXCEL_ENGINES:
            raw_df = pd.read_excel(io.BytesIO(content), engine=EXCEL_ENGINES[extension])
        elif extension in TEXT_EXTENSIONS:
            raw_df = read_delimited_text(content)
        else:
            raise DataSourceError(
                f"Unsupported file type '{extension or name}'. Upload an Excel or CSV file."
            )
    except DataSourceError:
        raise
    except Exception as e:
        logger.exception("Could not parse uploaded file %s", name)
        raise DataSourceError(f"Could not read '{name}': {e}") from e

    if raw_df.empty:
        raise DataSourceError(f"'{name}' contains no rows.")
    return normalize_records(raw_df, source=name)


def read_delimited_text(content):
    """Read delimited text, sniffing the delimiter (comma, semicolon, tab...)."""
    text = content.decode("utf-8-sig", errors="replace") if isinstance(content, bytes) else content
    return pd.read_csv(io.StringIO(text), sep=None, engine="python", dtype=str)


# --- Supabase ---
def load_records_from_supabase(client, table, chunk_size=1000):
    """Load every row of a Supabase table, paginating with range()."""
    all_data = []
    offset = 0
    while True:
        try:
            response = client.table(table).select("*").range(offset, offset + chunk_size - 1).execute()
        except Exception as e:
            logger.exception("Error loading table '%s'", table)
            raise DataSourceError(f"Error loading table '{table}': {e}") from e
        data_chunk = response.data
        if not data_chunk:
            break
        all_data.extend(data_chunk)
        if len(data_chunk) < chunk_size:
            break
        offset += chunk_size

    return normalize_records(pd.DataFrame(all_data, columns=None if all_data else ["date"]), source=table)


def records_to_rows(records):
    """Convert records to JSON-safe dicts for Supabase (ISO dates, NaN -> None)."""
    df = records.copy()
    df["date"] = df["date"].dt.strftime("%Y-%m-%d")
    df = df.astype(object).where(pd.notnull(df), None)
    return df.to_dict(orient="records")


def upload_records_to_supabase(client, table, records, batch_size=500):
    """Insert records into a Supabase table in batches; returns the number of rows sent."""
    data = records_to_rows(records)
    total = len(data)
    for i in range(0, total, batch_size):
        batch = data[i:i + batch_size]
        client.table(table).insert(batch).execute()
        logger.info("Uploaded %d / %d rows to %s", i + len(batch), total, table)
    return total
