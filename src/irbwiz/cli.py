"""
IRB Wizard CLI

Command-line interface over study files.

Usage:
    irbwiz determine study.yaml [--json]
    irbwiz check study.yaml [--json] [--today 2025-09-01]
    irbwiz steps study.yaml
    irbwiz samples
    irbwiz citi certificate.pdf
"""
from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from typing import Optional, Sequence

from .canon import parse_date
from .citi import parse_citi_certificate
from .config import Settings, configure_logging, get_settings
from .engine import STEPS, check, classify, missing_fields
from .exceptions import IrbWizError
from .models.issues import issue_count
from .snapshots import list_sample_studies, load_study


def _today(args: argparse.Namespace, settings: Settings) -> date:
    return getattr(args, "today", None) or settings.reference_date()


def _date_arg(value: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}")
    return parsed


def _dump(payload) -> None:
    print(json.dumps(payload, indent=2))


# =============================================================================
# Commands
# =============================================================================

def cmd_determine(args: argparse.Namespace) -> int:
    """Classify a study file."""
    settings = get_settings()
    study = load_study(args.file, today=_today(args, settings))
    result = classify(study.snapshot, settings=settings)

    if args.json:
        _dump(result.to_dict())
        return 0

    info = result.info
    print("=" * 70)
    print(f"DETERMINATION: {info.label}")
    print("=" * 70)
    print(f"  Study:       {study.title}")
    if result.category_label:
        print(f"  Category:    {result.category_label}")
    print(f"  Confidence:  {result.confidence:.0%}")
    if info.citation:
        print(f"  Citation:    {info.citation}")
    print()

    print("REASONS")
    print("-" * 70)
    for reason in result.reasons:
        print(f"  - {reason}")
    print()

    if result.flags:
        print("FLAGS")
        print("-" * 70)
        for flag in result.flags:
            print(f"  [{flag.severity.value.upper()}] {flag.message}")
        print()

    if result.recommendations:
        print("RECOMMENDATIONS")
        print("-" * 70)
        for rec in result.sorted_recommendations():
            print(f"  [{rec.priority.value.upper()}] {rec.title}")
        print()
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Run consistency checks; exit 1 when any error is found."""
    settings = get_settings()
    today = _today(args, settings)
    study = load_study(args.file, today=today)
    issues = check(study.snapshot, today=today, settings=settings)
    errors = issue_count(issues, "error")

    if args.json:
        _dump([issue.to_dict() for issue in issues])
        return 1 if errors else 0

    if not issues:
        print("No consistency issues found.")
        return 0

    print(f"{len(issues)} issue(s): {errors} error(s), {len(issues) - errors} warning(s)")
    print("-" * 70)
    for issue in issues:
        print(f"  [{issue.severity.value.upper()}] {issue.check_id} {issue.section}.{issue.field}: {issue.title}")
        print(f"      {issue.message}")
    return 1 if errors else 0


def cmd_steps(args: argparse.Namespace) -> int:
    """Show which wizard steps still have required fields missing."""
    settings = get_settings()
    study = load_study(args.file, today=_today(args, settings))

    print(f"{'Step':<6} {'Title':<24} {'Status'}")
    print("-" * 70)
    for step in STEPS:
        missing = missing_fields(step.id, study.snapshot)
        status = "complete" if not missing else f"{len(missing)} missing"
        print(f"{step.id:<6} {step.title:<24} {status}")
        for item in missing:
            print(f"{'':<6}   - {item.label}")
    return 0


def cmd_samples(args: argparse.Namespace) -> int:
    """Classify every bundled sample and compare with its documented tier."""
    settings = get_settings()
    studies = list_sample_studies(today=settings.reference_date())

    print(f"{'Sample':<36} {'Expected':<12} {'Computed':<12} {'Cat':>4}")
    print("-" * 70)
    mismatches = 0
    for study in studies:
        result = classify(study.snapshot, settings=settings)
        expected = study.expected_review_type.value if study.expected_review_type else "-"
        matched = study.expected_review_type in (None, result.type)
        if study.expected_category is not None and study.expected_category != result.category:
            matched = False
        if not matched:
            mismatches += 1
        category = "-" if result.category is None else str(result.category)
        marker = "" if matched else "  MISMATCH"
        print(f"{study.id:<36} {expected:<12} {result.type.value:<12} {category:>4}{marker}")
    print("-" * 70)
    print(f"{len(studies)} sample(s), {mismatches} mismatch(es)")
    return 1 if mismatches else 0


def cmd_citi(args: argparse.Namespace) -> int:
    """Extract training dates from a CITI certificate PDF."""
    dates = parse_citi_certificate(args.file)
    _dump(dates.to_dict())
    return 0 if dates.confidence != "none" else 1


# =============================================================================
# Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="IRB review-type determination and consistency checking",
        prog="irbwiz",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    determine_parser = subparsers.add_parser("determine", help="Determine the review type of a study file")
    determine_parser.add_argument("file", help="Study file (YAML or JSON)")
    determine_parser.add_argument("--json", action="store_true", help="Emit the result as JSON")
    determine_parser.add_argument("--today", type=_date_arg, help="Reference date for relative dates")
    determine_parser.set_defaults(func=cmd_determine)

    check_parser = subparsers.add_parser("check", help="Run consistency checks on a study file")
    check_parser.add_argument("file", help="Study file (YAML or JSON)")
    check_parser.add_argument("--json", action="store_true", help="Emit issues as JSON")
    check_parser.add_argument("--today", type=_date_arg, help="Reference date for temporal checks")
    check_parser.set_defaults(func=cmd_check)

    steps_parser = subparsers.add_parser("steps", help="List required fields missing per wizard step")
    steps_parser.add_argument("file", help="Study file (YAML or JSON)")
    steps_parser.set_defaults(func=cmd_steps)

    samples_parser = subparsers.add_parser("samples", help="Classify the bundled sample studies")
    samples_parser.set_defaults(func=cmd_samples)

    citi_parser = subparsers.add_parser("citi", help="Extract dates from a CITI certificate PDF")
    citi_parser.add_argument("file", help="Certificate PDF")
    citi_parser.set_defaults(func=cmd_citi)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        configure_logging(get_settings())
        return args.func(args)
    except IrbWizError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
