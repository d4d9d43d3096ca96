"""Healthspan Report CLI.

Reads a report request JSON file (sections: phenoAge, healthAge,
performanceAge, brainHealth, cardiology, toxinsLifestyle, clinicalData; keys
in camelCase or snake_case) and prints the report JSON.

Usage:
    python report_main.py request.json
    python report_main.py request.json --out report.json --no-narratives
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from core.errors import InvalidInput
from core.observability import get_metrics_summary
from models.inputs import ReportRequest
from services.report_service import ReportService

logger = logging.getLogger("healthspan")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a healthspan report from a request JSON file")
    parser.add_argument("request", type=str, help="Path to the report request JSON file.")
    parser.add_argument("--out", type=str, default=None, help="Write the report here instead of stdout.")
    parser.add_argument(
        "--cardiology-version",
        type=str,
        default=None,
        choices=["v1", "v3_2"],
        help="Cardiology model version (default: CARDIOLOGY_MODEL_VERSION).",
    )
    parser.add_argument(
        "--no-narratives",
        action="store_true",
        help="Skip Gemini and use deterministic narrative text only.",
    )
    parser.add_argument("--metrics", action="store_true", help="Log per-component latency after the run.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    with open(args.request, "r", encoding="utf-8") as f:
        request = ReportRequest.from_dict(json.load(f))

    service = ReportService(
        enable_narratives=False if args.no_narratives else None,
        cardiology_version=args.cardiology_version,
    )
    try:
        report = service.generate(request)
    except InvalidInput as e:
        print(f"Invalid input ({e.field}): {e}", file=sys.stderr)
        return 2

    text = json.dumps(report, indent=2, ensure_ascii=False, default=str)
    if args.out:
        Path(args.out).write_text(text, encoding="utf-8")
        logger.info(f"Report written to {args.out}")
    else:
        print(text)

    if args.metrics:
        logger.info(f"Metrics: {get_metrics_summary()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
