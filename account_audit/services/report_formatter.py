"""
Render audit results for the operator as a table, CSV or JSON.
"""

import json
from typing import List, Sequence, Union

import pandas as pd
from pydantic import BaseModel

OUTPUT_FORMATS = ("table", "json", "csv")

Result = Union[int, BaseModel, Sequence[BaseModel]]


def _records(result: Result) -> List[dict]:
    if isinstance(result, BaseModel):
        return [result.model_dump(mode="json")]
    return [row.model_dump(mode="json") for row in result]


def results_to_frame(rows: Sequence[BaseModel], columns: Sequence[str] = ()) -> pd.DataFrame:
    """Build a DataFrame from result rows, keeping the column order of the schema."""
    df = pd.DataFrame(_records(rows))
    if df.empty and columns:
        df = pd.DataFrame(columns=list(columns))
    if "hours_since_signup" in df.columns:
        df["hours_since_signup"] = df["hours_since_signup"].astype(float).round(2)
    return df


def format_result(result: Result, output_format: str = "table", columns: Sequence[str] = ()) -> str:
    """Render an operation's result in the requested format."""
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format: {output_format}")

    if isinstance(result, int):
        if output_format == "json":
            return json.dumps({"count": result})
        if output_format == "csv":
            return f"count\n{result}\n"
        return str(result)

    if output_format == "json":
        payload = _records(result)
        if isinstance(result, BaseModel):
            payload = payload[0]
        return json.dumps(payload, indent=2)

    df = results_to_frame(result if not isinstance(result, BaseModel) else [result], columns)
    if output_format == "csv":
        return df.to_csv(index=False)
    if df.empty:
        return "(no rows)"
    return df.to_string(index=False)
