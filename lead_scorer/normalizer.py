import io
import json
import logging
import re
from typing import Any, List, Optional, Tuple
import pandas as pd
from pydantic import ValidationError as PydanticValidationError
from .errors import ValidationError
from .models import LEAD_FIELDS, LeadIn


logger = logging.getLogger("lead_scorer.normalizer")


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    s = str(value).strip()
    return s if s else None


def normalize_column(name: Any) -> str:
    s = str(name).strip().lower()
    return re.sub(r"[\s\-]+", "_", s)


def read_csv_bytes(content: bytes) -> pd.DataFrame:
    try:
        df = pd.read_csv(io.BytesIO(content), dtype=str, skipinitialspace=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(f"Could not parse CSV: {e}")
    columns = [normalize_column(c) for c in df.columns]
    dupes = sorted({c for c in columns if columns.count(c) > 1})
    if dupes:
        raise ValidationError(f"CSV has duplicate columns: {', '.join(dupes)}")
    df.columns = columns
    return df


def leads_from_frame(df: pd.DataFrame) -> Tuple[List[LeadIn], List[int]]:
    """Return the valid leads and the 1-based file line numbers of skipped rows."""
    missing = [c for c in LEAD_FIELDS if c not in df.columns]
    if missing:
        raise ValidationError(f"CSV must contain columns: {', '.join(LEAD_FIELDS)}")
    leads: List[LeadIn] = []
    skipped: List[int] = []
    for i, (_, row) in enumerate(df.iterrows()):
        payload = {f: _clean_str(row.get(f)) for f in LEAD_FIELDS}
        try:
            leads.append(LeadIn.model_validate(payload))
        except PydanticValidationError as e:
            # line 1 is the header
            line = i + 2
            skipped.append(line)
            logger.warning(json.dumps({
                "event": "csv_row_skipped",
                "line": line,
                "fields": [".".join(str(p) for p in err["loc"]) for err in e.errors()],
            }))
    return leads, skipped


def parse_leads_csv(content: bytes) -> Tuple[List[LeadIn], List[int]]:
    leads, skipped = leads_from_frame(read_csv_bytes(content))
    if not leads:
        raise ValidationError("No valid leads found in CSV")
    return leads, skipped
