import json
import math
import os
import re
from typing import Any, Dict, List, Optional

import pandas as pd

from .model import DIGITS, ParseError
from .parser import PUZZLE_KEYS, SOLUTION_KEYS


def load_puzzles(file_path: str) -> List[Dict[str, Any]]:
    """
    Reads puzzle records from a file. Handles .parquet, .csv, .json and .jsonl formats.
    Returns a list of raw puzzle dictionaries.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    def _is_nonempty_str(value: Any) -> bool:
        return isinstance(value, str) and value.strip() != ""

    def _is_missing(value: Any) -> bool:
        return value is None or (isinstance(value, float) and math.isnan(value))

    def _digit(value: Any) -> str:
        number = int(value)
        if not 0 <= number < len(DIGITS):
            raise ParseError(f"Cell value out of range: {value!r}")
        return DIGITS[number]

    def _clean_grid_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            # Some datasets store grids as nested lists of ints.
            flat: List[Any] = []
            for item in value:
                flat.extend(item if isinstance(item, (list, tuple)) else [item])
            return "".join(_digit(v) for v in flat)
        if hasattr(value, "tolist"):
            return _clean_grid_text(value.tolist())
        text = str(value).strip()
        # Drop row separators and treat '.' as an empty cell.
        text = re.sub(r"[\s|,/-]", "", text).replace(".", "0")
        return text or None

    def _normalize_record(record: Dict[str, Any], position: int) -> Dict[str, Any]:
        record = {k: v for k, v in record.items() if not _is_missing(v)}

        for keys, target in ((PUZZLE_KEYS, "puzzle"), (SOLUTION_KEYS, "solution")):
            for key in keys:
                text = _clean_grid_text(record.get(key))
                if text:
                    record[target] = text
                    break

        if not _is_nonempty_str(str(record.get("id", "") or "")):
            record["id"] = f"puzzle_{position}"
        else:
            record["id"] = str(record["id"])
        return record

    def _normalize_all(records: List[Any]) -> List[Dict[str, Any]]:
        return [
            _normalize_record(dict(r), i)
            for i, r in enumerate(records)
            if isinstance(r, dict)
        ]

    # Case 1: Parquet File (Binary)
    if file_path.endswith(".parquet"):
        df = pd.read_parquet(file_path)
        return _normalize_all(df.to_dict(orient="records"))

    # Case 2: CSV File; keep grids as text so leading zeros survive
    if file_path.endswith(".csv"):
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        return _normalize_all(df.to_dict(orient="records"))

    # Case 3: JSON File (Text; array or object)
    if file_path.endswith(".json"):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            if isinstance(payload, list):
                return _normalize_all(payload)
            if isinstance(payload, dict):
                return _normalize_all([payload])
            return []
        except json.JSONDecodeError:
            # Some sources use ".json" but actually store JSONL; fall back to line-delimited parsing.
            pass

    # Case 4: JSONL File (Text)
    data = []
    with open(file_path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            data.append(obj)
    return _normalize_all(data)
