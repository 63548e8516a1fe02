# scripts/upload/upload_quality_records.py
import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from egg_quality.config import get_setting, get_supabase_client
from egg_quality.data_source import read_uploaded_file, upload_records_to_supabase
from egg_quality.errors import DataSourceError

# Create logs directory if not exists
os.makedirs("logs", exist_ok=True)

log_filename = f"logs/upload_log_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.FileHandler(log_filename), logging.StreamHandler()],
)
logger = logging.getLogger("upload_quality_records")


def upload_file(path, table, batch_size=500):
    path = Path(path)
    logger.info("Reading quality records from: %s", path)
    result = read_uploaded_file(path.name, path.read_bytes())
    if result.invalid_dates:
        logger.warning("%d row(s) skipped because of unreadable dates", result.invalid_dates)
    if result.records.empty:
        logger.info("No rows to upload to %s", table)
        return 0

    client = get_supabase_client()
    if client is None:
        raise DataSourceError("SUPABASE_URL and SUPABASE_KEY must be set to upload records.")
    total = upload_records_to_supabase(client, table, result.records, batch_size=batch_size)
    logger.info("Finished uploading to %s: %d rows", table, total)
    return total


def main(argv=None):
    parser = argparse.ArgumentParser(description="Upload an egg quality spreadsheet/CSV to Supabase.")
    parser.add_argument("input", help="Path to the .xlsx/.csv file")
    parser.add_argument("--table", default=get_setting("SUPABASE_TABLE"), help="Target Supabase table")
    parser.add_argument("--batch-size", type=int, default=500)
    args = parser.parse_args(argv)

    try:
        upload_file(args.input, args.table, args.batch_size)
    except DataSourceError as e:
        logger.error("Upload failed: %s", e)
        return 1
    except Exception:
        logger.exception("Unexpected error uploading %s", args.input)
        return 1
    print(f"Upload process complete. Check logs in {log_filename}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
