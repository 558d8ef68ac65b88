"""CLI commands for GutSafe."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from gutsafe.api.dependencies import get_learning_service, get_rule_set, get_scan_service
from gutsafe.api.schemas import HistoryRequest
from gutsafe.config import settings
from gutsafe.errors import InvalidInputError
from gutsafe.models import FoodItem, GutProfile, ReportPeriod
from gutsafe.services.symptom_service import symptom_service


def _load_json(path: str) -> dict:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        print(f"Error: Cannot read {path}: {e.strerror}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: {path} is not valid JSON: {e.msg} (line {e.lineno})")
        sys.exit(1)


def _load_model(model, path: str):
    try:
        return model.model_validate(_load_json(path))
    except ValidationError as e:
        print(f"Error: {path} is not a valid {model.__name__}: {e.error_count()} error(s)")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            print(f"  {location}: {error['msg']}")
        sys.exit(1)


def analyze(food_path: str, profile_path: str) -> None:
    """Print the scan analysis of a food item for a profile."""
    food_item = _load_model(FoodItem, food_path)
    profile = _load_model(GutProfile, profile_path)
    try:
        analysis = get_scan_service().analyze(food_item, profile)
    except InvalidInputError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(analysis.model_dump_json(indent=2))


def insights(profile_path: str, history_path: str) -> None:
    """Print learning insights for a profile and its scan/symptom history."""
    profile = _load_model(GutProfile, profile_path)
    history = _load_model(HistoryRequest, history_path)
    result = get_learning_service().get_or_compute(
        profile, history.scan_records, history.symptom_logs
    )
    print(result.model_dump_json(indent=2))


def report(history_path: str, period: str) -> None:
    """Print a symptom report for the history's symptom logs."""
    history = _load_model(HistoryRequest, history_path)
    result = symptom_service.build_report(history.symptom_logs, ReportPeriod(period))
    print(result.model_dump_json(indent=2))


def show_rules() -> None:
    print(json.dumps(get_rule_set().describe(), indent=2))


def main():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(description="GutSafe CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # analyze command
    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze a food item against a gut profile"
    )
    analyze_parser.add_argument("--food", required=True, help="Food item JSON file")
    analyze_parser.add_argument("--profile", required=True, help="Gut profile JSON file")

    # insights command
    insights_parser = subparsers.add_parser(
        "insights", help="Detect patterns and recommendations from history"
    )
    insights_parser.add_argument("--profile", required=True, help="Gut profile JSON file")
    insights_parser.add_argument(
        "--history",
        required=True,
        help="JSON file with scan_records and symptom_logs",
    )

    # report command
    report_parser = subparsers.add_parser("report", help="Summarize symptom logs")
    report_parser.add_argument(
        "--history", required=True, help="JSON file with symptom_logs"
    )
    report_parser.add_argument(
        "--period",
        choices=[p.value for p in ReportPeriod],
        default=ReportPeriod.MONTH.value,
        help="Reporting period (default: month)",
    )

    # rules command
    subparsers.add_parser("rules", help="Show the loaded trigger rule tables")

    args = parser.parse_args()

    if args.command == "analyze":
        analyze(args.food, args.profile)
    elif args.command == "insights":
        insights(args.profile, args.history)
    elif args.command == "report":
        report(args.history, args.period)
    elif args.command == "rules":
        show_rules()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
