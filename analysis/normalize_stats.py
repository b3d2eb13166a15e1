# Normalize captured `docker stats` tables: size columns -> whole bytes,
# percentage columns -> floats. Input CSVs are captures appended tick after tick:
#   docker stats --no-stream --format \
#       "{{.Name}},{{.CPUPerc}},{{.MemUsage}},{{.MemPerc}},{{.NetIO}},{{.BlockIO}}"

import argparse
import logging
import os
from dataclasses import dataclass

import pandas as pd

from runner.logging_config import LOG_LEVELS, setup_logging
from runner.parse_units import (
    MalformedNumericValue,
    UnitParseError,
    parse_block_io,
    parse_mem_usage,
    parse_net_io,
    percentage_to_number,
)

logger = logging.getLogger(__name__)

DEFAULT_INPUT = "data/docker_stats.csv"
OUT_CSV = "data/docker_stats_normalized.csv"

# Table headers of `docker stats` and their --format template names
COMPOSITE_COLUMNS = {
    "MEM USAGE / LIMIT": (parse_mem_usage, "mem_usage_bytes", "mem_limit_bytes"),
    "MemUsage": (parse_mem_usage, "mem_usage_bytes", "mem_limit_bytes"),
    "NET I/O": (parse_net_io, "net_rx_bytes", "net_tx_bytes"),
    "NetIO": (parse_net_io, "net_rx_bytes", "net_tx_bytes"),
    "BLOCK I/O": (parse_block_io, "block_read_bytes", "block_write_bytes"),
    "BlockIO": (parse_block_io, "block_read_bytes", "block_write_bytes"),
}

PERCENT_COLUMNS = {
    "CPU %": "cpu_percent",
    "CPUPerc": "cpu_percent",
    "MEM %": "mem_percent",
    "MemPerc": "mem_percent",
}

ON_ERROR = ("skip", "nan", "raise")

ERROR_COLUMNS = ["row", "column", "value", "error"]

# Byte columns are nullable Int64
INT64_MAX = 2**63 - 1

@dataclass
class NormalizeResult:
    frame: pd.DataFrame
    errors: pd.DataFrame

def _cell_text(cell) -> str:
    if isinstance(cell, str):
        return cell
    if pd.isna(cell):
        return ""
    return str(cell)

def _output_names(col) -> tuple:
    if col in COMPOSITE_COLUMNS:
        return COMPOSITE_COLUMNS[col][1:]
    if col in PERCENT_COLUMNS:
        return (PERCENT_COLUMNS[col],)
    return (col,)

def check_output_columns(columns) -> None:
    # "MEM USAGE / LIMIT" and "MemUsage" in one table would write the same output
    seen = {}
    for col in columns:
        for name in _output_names(col):
            if name in seen:
                raise ValueError(f"Columns {seen[name]!r} and {col!r} both produce {name!r}")
            seen[name] = col

def drop_header_rows(df: pd.DataFrame) -> pd.DataFrame:
    # Appended captures repeat the header line inside the data
    if df.empty or len(df.columns) == 0:
        return df.copy()
    is_header = pd.Series(True, index=df.index)
    for col in df.columns:
        is_header &= df[col].map(_cell_text).str.strip() == str(col).strip()
    dropped = int(is_header.sum())
    if dropped:
        logger.debug("Dropped %d repeated header rows", dropped)
    return df[~is_header].copy()

def normalize_frame(df: pd.DataFrame, strict: bool = False, on_error: str = "skip") -> NormalizeResult:
    if on_error not in ON_ERROR:
        raise ValueError(f"on_error must be one of {ON_ERROR}, got {on_error!r}")
    check_output_columns(df.columns)

    df = drop_header_rows(df)
    failures = []
    bad_rows = set()

    def record(idx, col, err: UnitParseError) -> None:
        if on_error == "raise":
            raise err
        logger.warning("row %s column %r: %s", idx, col, err)
        failures.append({"row": idx, "column": col, "value": err.value, "error": type(err).__name__})
        bad_rows.add(idx)

    out = {}
    for col in df.columns:
        if col in COMPOSITE_COLUMNS:
            parse, first_name, second_name = COMPOSITE_COLUMNS[col]
            firsts, seconds = [], []
            for idx, cell in df[col].items():
                text = _cell_text(cell)
                try:
                    first, second = parse(text, strict=strict)
                    if max(first, second) > INT64_MAX:
                        raise MalformedNumericValue(text, "too large for a byte count")
                except UnitParseError as e:
                    record(idx, col, e)
                    first = second = pd.NA
                firsts.append(first)
                seconds.append(second)
            out[first_name] = pd.Series(pd.array(firsts, dtype="Int64"), index=df.index)
            out[second_name] = pd.Series(pd.array(seconds, dtype="Int64"), index=df.index)
        elif col in PERCENT_COLUMNS:
            values = []
            for idx, cell in df[col].items():
                try:
                    values.append(percentage_to_number(_cell_text(cell)))
                except UnitParseError as e:
                    record(idx, col, e)
                    values.append(float("nan"))
            out[PERCENT_COLUMNS[col]] = pd.Series(values, index=df.index, dtype="float64")
        else:
            out[col] = df[col]

    frame = pd.DataFrame(out, index=df.index)
    if on_error == "skip" and bad_rows:
        frame = frame.drop(index=sorted(bad_rows))
    errors = pd.DataFrame(failures, columns=ERROR_COLUMNS)
    return NormalizeResult(frame=frame.reset_index(drop=True), errors=errors)

def load_stats(paths: list[str], sep: str = ",") -> pd.DataFrame:
    frames = []
    for p in paths:
        if not os.path.exists(p):
            raise SystemExit(f"Input file not found: {p}")
        frames.append(pd.read_csv(p, sep=sep, dtype=str, skipinitialspace=True))
    return pd.concat(frames, ignore_index=True)

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Normalize docker stats CSV captures to bytes and percentages.")
    p.add_argument("--input", nargs="+", default=[DEFAULT_INPUT],
                   help=f"One or more captured CSV files (default: {DEFAULT_INPUT}).")
    p.add_argument("--output", default=OUT_CSV,
                   help=f"Normalized CSV to write (default: {OUT_CSV}).")
    p.add_argument("--errors-out", default=None,
                   help="Optional CSV listing the cells that failed to parse.")
    p.add_argument("--strict", action="store_true",
                   help="Fail on unknown unit suffixes instead of treating them as 0.")
    p.add_argument("--on-error", choices=ON_ERROR, default="skip",
                   help="What to do with rows that fail to parse (default: skip).")
    p.add_argument("--sep", default=",", help="Field separator of the input files (default: ',').")
    p.add_argument("--log-level", choices=LOG_LEVELS, default="INFO")
    return p.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    df = load_stats(args.input, sep=args.sep)
    try:
        result = normalize_frame(df, strict=args.strict, on_error=args.on_error)
    except UnitParseError as e:
        logger.error("Aborting: %s", e)
        return 1

    out_dir = os.path.dirname(args.output)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    result.frame.to_csv(args.output, index=False)

    if args.errors_out:
        err_dir = os.path.dirname(args.errors_out)
        if err_dir:
            os.makedirs(err_dir, exist_ok=True)
        result.errors.to_csv(args.errors_out, index=False)

    print(f"Rows in: {len(df)}  rows out: {len(result.frame)}  parse failures: {len(result.errors)}")
    print(f"Wrote {args.output}")
    if args.errors_out:
        print(f"Wrote {args.errors_out}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
