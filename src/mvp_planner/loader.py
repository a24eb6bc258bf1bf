import io
import logging
import pathlib

import pandas as pd

from .record_store import COLLECTION_NAMES

# Header spellings seen in the planning sheets → record keys
RENAME_MAP = {
    "active": "is_active",
    "activated": "is_activated",
    "npi_number": "npi",
}


def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """
    CLEAN & NORMALIZE headers:
      - strip, drop any "(…)" suffix, spaces → underscore, drop colons, lowercase
      - apply renames from RENAME_MAP where the target column is not already present
    """
    df.columns = (
        df.columns.astype(str)
        .str.strip()
        .str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
        .str.replace(r"\s+", "_", regex=True)  # spaces → underscore
        .str.replace(":", "", regex=False)  # drop colons
        .str.lower()
    )
    return df.rename(
        columns={
            orig: target
            for orig, target in RENAME_MAP.items()
            if orig in df.columns and target not in df.columns
        }
    )


def frame_to_records(df: pd.DataFrame) -> list[dict[str, str]]:
    """
    Turn a DataFrame into flat string records:
      - every cell is a trimmed string, blanks/NaN become ""
      - rows where every cell is empty are dropped
    """
    df = normalize_headers(df)
    df = df.fillna("").astype(str).apply(lambda col: col.str.strip())
    df = df[(df != "").any(axis=1)]
    return df.to_dict(orient="records")


def parse_csv_records(csv_text: str) -> list[dict[str, str]]:
    """
    Decode a CSV export (first row = header) into records.
    Quoted fields follow the usual CSV rules ("" escapes a quote); rows with
    more fields than the header are skipped.
    """
    if not csv_text.strip():
        return []
    df = pd.read_csv(
        io.StringIO(csv_text),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        on_bad_lines="skip",
    )
    return frame_to_records(df)


def load_csv_directory(directory: str) -> dict[str, list[dict[str, str]]]:
    """
    Read `<collection>.csv` for each known collection found in `directory`.
    Missing files are simply left out of the result.
    """
    base = pathlib.Path(directory)
    collections: dict[str, list[dict[str, str]]] = {}
    for name in COLLECTION_NAMES:
        path = base / f"{name}.csv"
        if not path.is_file():
            logging.debug(f"No {path.name} in {base}")
            continue
        collections[name] = parse_csv_records(path.read_text(encoding="utf-8"))
    return collections


def load_workbook_as_collections(workbook_path: str) -> dict[str, list[dict[str, str]]]:
    """
    Read each worksheet named after a collection (case-insensitive):
      - first row = header
      - all cells read as text
      - other worksheets are ignored
    """
    excel = pd.ExcelFile(workbook_path, engine="openpyxl")
    collections: dict[str, list[dict[str, str]]] = {}

    for sheet_name in excel.sheet_names:
        name = sheet_name.strip().casefold()
        if name not in COLLECTION_NAMES:
            logging.debug(f"Skipping worksheet {sheet_name!r}")
            continue
        df = pd.read_excel(excel, sheet_name=sheet_name, header=0, dtype=str)
        collections[name] = frame_to_records(df)

    return collections


def write_csv_directory(collections: dict[str, list[dict[str, str]]], directory: str) -> list[pathlib.Path]:
    """Write each collection to `<collection>.csv` in `directory` (created if needed)."""
    base = pathlib.Path(directory)
    base.mkdir(parents=True, exist_ok=True)
    written = []
    for name, records in collections.items():
        path = base / f"{name}.csv"
        pd.DataFrame.from_records(records).to_csv(path, index=False)
        written.append(path)
    return written
