from __future__ import annotations
import argparse
import logging
import sys
from time import perf_counter

import pyarrow.csv as pcsv
import pyarrow.parquet as pq
from shapely.errors import ShapelyError

from .arrow import deserialize_to_wkb_array, envelope_table, overall_envelope, serialize_wkb_array
from .errors import ShapeSerdeError

logger = logging.getLogger(__name__)


def _replace_column(path: str, out_path: str, geom_col: str, convert, compression: str) -> int:
    table = pq.read_table(path)
    if geom_col not in table.column_names:
        raise ValueError(f"Missing geometry column '{geom_col}' in {path}")
    idx = table.column_names.index(geom_col)
    t0 = perf_counter()
    converted = convert(table[geom_col])
    table = table.set_column(idx, geom_col, converted)
    # GeoParquet 'geo' metadata describes WKB and no longer applies.
    md = {k: v for k, v in (table.schema.metadata or {}).items() if k != b"geo"}
    table = table.replace_schema_metadata(md or None)
    pq.write_table(table, out_path, compression=compression)
    logger.info(
        "Converted %d rows of '%s' in %.3fs -> %s",
        table.num_rows, geom_col, perf_counter() - t0, out_path,
    )
    return table.num_rows


def cmd_encode(args) -> int:
    _replace_column(args.input, args.output, args.geom_col, serialize_wkb_array, args.compression)
    return 0


def cmd_decode(args) -> int:
    _replace_column(args.input, args.output, args.geom_col, deserialize_to_wkb_array, args.compression)
    return 0


def cmd_bounds(args) -> int:
    table = pq.read_table(args.input, columns=[args.geom_col])
    column = table[args.geom_col]
    t0 = perf_counter()
    env = overall_envelope(column)
    logger.info("Scanned %d rows in %.3fs", table.num_rows, perf_counter() - t0)
    if env is None:
        print("empty")
    else:
        print("%r %r %r %r" % env.bounds)
    if args.output:
        pcsv.write_csv(envelope_table(column), args.output)
        logger.info("Wrote per-row envelopes to %s", args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shape-serde",
        description="Convert GeoParquet geometry columns to/from serialized shapes and read their bounds.",
    )
    ap.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    sub = ap.add_subparsers(dest="command", required=True)

    def _io(p, output_required=True):
        p.add_argument("--input", required=True, help="Input Parquet file.")
        p.add_argument("--output", required=output_required, help="Output file.")
        p.add_argument("--geom-col", default="geometry", help="Geometry column name (default: geometry).")

    p = sub.add_parser("encode", help="WKB geometry column -> serialized shapes.")
    _io(p)
    p.add_argument("--compression", default="zstd", help="Parquet compression codec (default: zstd).")
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("decode", help="Serialized shapes -> WKB geometry column.")
    _io(p)
    p.add_argument("--compression", default="zstd", help="Parquet compression codec (default: zstd).")
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser("bounds", help="Overall envelope of a serialized shape column.")
    _io(p, output_required=False)
    p.set_defaults(func=cmd_bounds)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (ShapeSerdeError, ShapelyError, ValueError, OSError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
