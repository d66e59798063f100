"""CLI entry: python -m audit [scenario.yaml|scenario.json]"""

import argparse
import logging
from pathlib import Path

import yaml

from feasibility.config import ReportOptions
from feasibility.scenario import ScenarioDocument
from audit.runner import run_all_checks
from audit.report import write_json_report, format_text_report


def load_scenario(path):
    """Stored scenario document. JSON is valid YAML, so one loader reads both."""
    with open(path, encoding="utf-8") as f:
        return yaml.load(f, Loader=yaml.SafeLoader)


def main():
    parser = argparse.ArgumentParser(description="School Feasibility Model audit")
    parser.add_argument("scenario", nargs="?", help="Scenario document (YAML or JSON)")
    parser.add_argument("--display", choices=["USD", "LOCAL"],
                        help="Display currency (default: entry currency)")
    parser.add_argument("--output", default=None, help="JSON report path")
    parser.add_argument("--summary", action="store_true",
                        help="Print the per-year summary table")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.scenario:
        print(f"Loading scenario: {args.scenario}")
        document = ScenarioDocument.from_raw(load_scenario(args.scenario))
    else:
        document = ScenarioDocument.default()

    print("Running model...")
    audit_data = run_all_checks(document=document,
                                options=ReportOptions(display_currency=args.display))

    if args.summary:
        print(audit_data["model_result"].dataframe.T.to_string())
        print()

    # Print text report
    print(format_text_report(audit_data))

    # Write JSON
    output_dir = Path(__file__).resolve().parent.parent / "output"
    json_path = write_json_report(
        audit_data, args.output or output_dir / "audit_report.json")
    print(f"\nJSON report written to: {json_path}")


if __name__ == "__main__":
    main()
