"""
Reading labelled clinical-vignette records from CSV files.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import pandas as pd


@dataclass
class DataRecord:
    """
    One row of the vignette dataset.

    Every field is the raw cell text, or None when the column is absent or
    the cell is empty. Categorical fields are lower-cased on read.
    """
    master_index: Optional[str] = None
    county: Optional[str] = None
    health_level: Optional[str] = None
    years_of_experience: Optional[str] = None
    prompt: Optional[str] = None
    nursing_competency: Optional[str] = None
    clinical_panel: Optional[str] = None
    clinician: Optional[str] = None
    gpt4_0: Optional[str] = None
    llama: Optional[str] = None
    gemini: Optional[str] = None
    ddx_snomed: Optional[str] = None


# Normalized header -> DataRecord field
COLUMN_FIELDS: Dict[str, str] = {
    "master_index": "master_index",
    "county": "county",
    "health level": "health_level",
    "years of experience": "years_of_experience",
    "prompt": "prompt",
    "nursing competency": "nursing_competency",
    "clinical panel": "clinical_panel",
    "clinician": "clinician",
    "gpt4.0": "gpt4_0",
    "llama": "llama",
    "gemini": "gemini",
    "ddx snomed": "ddx_snomed",
}

LOWERCASE_FIELDS = ("county", "health_level", "nursing_competency", "clinical_panel")


def _normalize_header(header: str) -> str:
    return str(header).strip().lower()


def _cell(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value)
    return text if text != "" else None


def records_from_frame(frame: pd.DataFrame) -> List[DataRecord]:
    """Convert a string-typed DataFrame into records, matching headers loosely."""
    columns: Dict[str, str] = {}
    for column in frame.columns:
        field_name = COLUMN_FIELDS.get(_normalize_header(column))
        # first matching column wins
        if field_name is not None and field_name not in columns:
            columns[field_name] = column

    records = []
    for row in frame.itertuples(index=False, name=None):
        values = dict(zip(frame.columns, row))
        kwargs = {name: _cell(values[column]) for name, column in columns.items()}
        for name in LOWERCASE_FIELDS:
            if kwargs.get(name) is not None:
                kwargs[name] = kwargs[name].lower()
        records.append(DataRecord(**kwargs))
    return records


def read_records(path: str) -> List[DataRecord]:
    """
    Read every record of a CSV file.

    Parameters
    ----------
    path : str
        CSV file with a header row.

    Returns
    -------
    records : list of DataRecord

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    pandas.errors.ParserError
        If the file is not valid CSV.
    """
    frame = pd.read_csv(
        path,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
    )
    return records_from_frame(frame)


def merge_by_id(
    clean: Sequence[DataRecord],
    raw: Sequence[DataRecord],
) -> List[DataRecord]:
    """
    Merge two record lists keyed by ``master_index``.

    Records from ``raw`` replace ``clean`` records that share an id. The
    result keeps first-appearance order, and duplicate ids collapse to the
    last record seen.
    """
    merged: Dict[Optional[str], DataRecord] = {}
    for record in list(clean) + list(raw):
        merged[record.master_index] = record
    return list(merged.values())


__all__ = ['DataRecord', 'COLUMN_FIELDS', 'read_records', 'records_from_frame', 'merge_by_id']
