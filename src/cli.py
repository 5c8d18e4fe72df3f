"""Command-line entry point for fraudscope.

Usage:
    python -m src.cli validate transaction.json
    python -m src.cli ingest transactions.csv --preview 10
    python -m src.cli score transactions.csv --mode batch --output results.csv
    python -m src.cli serve
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from src.config import settings
from src.domains.transactions.coercion import coerce_row
from src.domains.transactions.errors import FraudscopeError
from src.domains.transactions.validation import validate_transaction
from src.pipeline.export import export_filename
from src.pipeline.ingest import check_csv_filename, ingest_csv
from src.pipeline.session import BatchSession, BatchStage, ScoringMode
from src.scoring.client import ScoringClient
from src.shared.logging import setup_logging

logger = structlog.get_logger()


def _cmd_validate(args: argparse.Namespace) -> int:
    with open(args.path) as f:
        values = json.load(f)
    errors = validate_transaction(coerce_row(values))
    if errors:
        for error in errors:
            print(f"- {error}", file=sys.stderr)
        return 1
    print("Transaction is valid")
    return 0


def _cmd_ingest(args: argparse.Namespace) -> int:
    check_csv_filename(args.path)
    submission = ingest_csv(Path(args.path))
    print(f"CSV loaded successfully. {len(submission)} transactions found.")
    for row in submission.preview(args.preview):
        print(json.dumps(row))
    return 0


async def _score(args: argparse.Namespace) -> int:
    path = Path(args.path)
    session = BatchSession()
    state = await session.load(path.name, path.read_bytes())
    if state.stage is BatchStage.FAILED:
        print(state.error, file=sys.stderr)
        return 1

    async with ScoringClient(base_url=args.api_url) as client:
        state = await session.analyze(client, mode=ScoringMode(args.mode))
    if state.stage is not BatchStage.ANALYZED:
        print(f"Failed to analyze transactions: {state.error}", file=sys.stderr)
        return 1

    summary = state.summary
    print(
        f"Analysis complete! {summary.total} transactions processed: "
        f"{summary.fraud_count} fraud, {summary.legitimate_count} legitimate."
    )
    if summary.total == 0:
        return 0

    filename, content = session.export()
    output = Path(args.output or filename)
    output.write_bytes(content)
    print(f"Results exported to {output}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("src.main:app", host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="fraudscope transaction scoring console")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")
    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Check one transaction (JSON object) against business rules")
    p_validate.add_argument("path", help="Path to a JSON file holding one transaction")

    p_ingest = sub.add_parser("ingest", help="Decode a CSV file and show a preview")
    p_ingest.add_argument("path", help="Path to the CSV file")
    p_ingest.add_argument("--preview", type=int, default=settings.preview_rows, help="Rows to show")

    p_score = sub.add_parser("score", help="Score a CSV file and export the results")
    p_score.add_argument("path", help="Path to the CSV file")
    p_score.add_argument(
        "--mode",
        choices=[m.value for m in ScoringMode],
        default=ScoringMode.BATCH.value,
        help="Send records as JSON (batch) or upload the file itself (file)",
    )
    p_score.add_argument("--api-url", default=None, help="Scoring service base URL")
    p_score.add_argument("--output", default=None, help=f"Output CSV (default {export_filename()})")

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=settings.host)
    p_serve.add_argument("--port", type=int, default=settings.port)

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.command == "validate":
            return _cmd_validate(args)
        if args.command == "ingest":
            return _cmd_ingest(args)
        if args.command == "score":
            return asyncio.run(_score(args))
        return _cmd_serve(args)
    except FraudscopeError as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
