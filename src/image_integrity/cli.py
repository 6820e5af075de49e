"""Command-line interface for the image integrity index."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable

import pandas as pd
from tqdm import tqdm

from .acquire.fetch import DEFAULT_MAX_BYTES, DEFAULT_TIMEOUT, is_url
from .errors import IntegrityError
from .io.models import ScoreReport
from .io.outputs import write_report, write_report_table, write_reports
from .score.engine import DEFAULT_WORKERS, compute_integrity_score_from_paths
from .score.telemetry import LoggingTelemetrySink, TelemetrySink

_PAIR_COLUMNS = ("source", "derived")


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the integrity scorer."""
    parser = argparse.ArgumentParser(
        description="Score how far an edited image departs from its source capture."
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Path or URL of the original image.",
    )
    parser.add_argument(
        "derived",
        nargs="?",
        help="Path or URL of the edited image.",
    )
    parser.add_argument(
        "--pairs",
        default=None,
        help="CSV file with 'source' and 'derived' columns to score in batch.",
    )
    parser.add_argument(
        "--out",
        default=None,
        help="Directory where batch reports (JSON and Parquet) will be written.",
    )
    parser.add_argument(
        "--json",
        dest="json_path",
        default=None,
        help="Write the single-pair report to this JSON file.",
    )
    parser.add_argument(
        "--max-bytes",
        type=int,
        default=DEFAULT_MAX_BYTES,
        help="Reject images larger than this many bytes (default 50 MiB).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help="Threads used for the analyses of one pair; 1 runs them sequentially.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort scoring a pair after this many seconds.",
    )
    parser.add_argument(
        "--fetch-timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Per-request timeout in seconds for images given as URLs.",
    )
    parser.add_argument(
        "--telemetry",
        action="store_true",
        help="Log a telemetry event with the scores of every pair.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.pairs is None and (args.source is None or args.derived is None):
        parser.error("provide SOURCE and DERIVED, or --pairs CSV")
    if args.pairs is not None and args.out is None:
        parser.error("--pairs requires --out")
    return args


def read_pairs(path: Path) -> list[tuple[str, str]]:
    """Read source/derived locations from a CSV, resolving relative paths against it."""
    if not path.exists():
        raise FileNotFoundError(f"Pairs file does not exist: {path}")
    df = pd.read_csv(path, dtype=str, encoding="utf-8-sig")
    missing = [column for column in _PAIR_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Pairs file {path} is missing columns: {', '.join(missing)}")

    df = df.dropna(subset=list(_PAIR_COLUMNS))
    base = path.parent
    pairs: list[tuple[str, str]] = []
    for source, derived in zip(df["source"], df["derived"]):
        pairs.append((_resolve_location(source, base), _resolve_location(derived, base)))
    return pairs


def _resolve_location(value: str, base: Path) -> str:
    cleaned = value.strip()
    if is_url(cleaned) or cleaned.startswith("data:"):
        return cleaned
    candidate = Path(cleaned)
    if not candidate.is_absolute():
        candidate = base / candidate
    return str(candidate)


def _print_report(report: ScoreReport) -> None:
    print(f"[score] {report.composite_label}")
    print(f"  {report.explanation}")
    components = report.components
    if components is not None:
        print(
            f"  hash={components.hash_similarity} edges={components.edge_preservation}"
            f" features={components.feature_preservation}"
            f" histogram_distance={components.histogram_distance:.4f}"
        )


def _score_single(args: argparse.Namespace, telemetry: TelemetrySink | None) -> int:
    try:
        report = compute_integrity_score_from_paths(
            args.source,
            args.derived,
            max_bytes=args.max_bytes,
            fetch_timeout=args.fetch_timeout,
            max_workers=args.workers,
            timeout=args.timeout,
            telemetry=telemetry,
        )
    except IntegrityError as exc:
        print(f"[error] {exc}")
        return 1

    _print_report(report)
    if args.json_path:
        saved = write_report(Path(args.json_path), report)
        print(f"[saved] {saved}")
    return 0


def _score_batch(args: argparse.Namespace, telemetry: TelemetrySink | None) -> int:
    pairs = read_pairs(Path(args.pairs))
    print(f"[pairs] {len(pairs)} pairs to score")

    reports: list[ScoreReport] = []
    failures = 0
    for source, derived in tqdm(pairs, desc="Scoring pairs", unit="pair", leave=False):
        try:
            report = compute_integrity_score_from_paths(
                source,
                derived,
                max_bytes=args.max_bytes,
                fetch_timeout=args.fetch_timeout,
                max_workers=args.workers,
                timeout=args.timeout,
                telemetry=telemetry,
            )
        except IntegrityError as exc:
            failures += 1
            print(f"[warn] {source} vs {derived}: {exc}")
            continue
        reports.append(report)

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = write_reports(out_dir / "reports.json", reports)
    print(f"[saved] {json_path}")
    if reports:
        table_path = write_report_table(out_dir / "reports.parquet", reports)
        print(f"[saved] {table_path} ({len(reports)} rows)")
    else:
        print("[reports] no successful reports to tabulate")

    print(f"Scored: {len(reports)} of {len(pairs)} (failed {failures})")
    return 1 if failures else 0


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
    telemetry: TelemetrySink | None = LoggingTelemetrySink() if args.telemetry else None

    if args.pairs is not None:
        return _score_batch(args, telemetry)
    return _score_single(args, telemetry)


if __name__ == "__main__":
    raise SystemExit(main())
