#!/usr/bin/env python3
"""
testsummary CLI: merge XML test results and render the localized HTML report.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from lxml import etree
from pydantic import ValidationError

from testsummary.app.config import load_report_config
from testsummary.app.errors import ConfigurationError, ReportError
from testsummary.app.logging_config import configure_logging
from testsummary.app.merger import create_summary_document
from testsummary.app.params import build_parameters
from testsummary.app.report import SummaryReport
from testsummary.app.schemas import AssetSpec, ReportLanguage
from testsummary.app import writer


def _parse_asset(value: str) -> AssetSpec:
    template, sep, filename = value.rpartition(":")
    if not sep or not template or not filename:
        raise ConfigurationError(f"--asset expects TEMPLATE:FILENAME, got '{value}'")
    try:
        return AssetSpec(template=Path(template), filename=filename)
    except ValidationError as e:
        raise ConfigurationError(f"invalid --asset {value}: {e}") from e


def cmd_report(args: argparse.Namespace) -> None:
    assets: Optional[List[AssetSpec]] = [_parse_asset(a) for a in args.asset] if args.asset else None
    cfg = load_report_config(
        args.config,
        input_files=args.files or None,
        output_directory=args.output_dir,
        output_filename=args.output_file,
        language=args.lang,
        open_description=args.open_description,
        template_path=args.template,
        i18n_template_path=args.i18n_template,
        assets=assets,
        intermediate_directory=args.intermediate_dir,
        metrics_file=args.metrics_file,
    )
    result = SummaryReport(cfg).execute()
    print(result.report_path)
    for path in result.asset_paths:
        print(path)


def cmd_merge(args: argparse.Namespace) -> None:
    doc = create_summary_document(args.files)
    data = etree.tostring(doc, xml_declaration=True, encoding="utf-8", pretty_print=True)
    if args.out:
        out = Path(args.out)
        writer.write_bytes(out.parent, out.name, data)
        print(out)
    else:
        print(data.decode("utf-8"), end="")


def cmd_params(args: argparse.Namespace) -> None:
    print(json.dumps(build_parameters(bool(args.open_description)), indent=2))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="testsummary", description="Test summary report generator")
    p.add_argument(
        "--log-level",
        default=None,
        help="Log level (default from LOG_LEVEL, else INFO)",
    )
    sub = p.add_subparsers(dest="cmd")

    p_report = sub.add_parser("report", help="Merge result files and write the HTML report")
    p_report.add_argument("files", nargs="*", help="XML result files, merged in the given order")
    p_report.add_argument("--config", help="YAML config file (default from TESTSUMMARY_CONFIG)")
    p_report.add_argument("--output-dir", help="Output directory (default DefaultReport)")
    p_report.add_argument("--output-file", help="Report file name (default index.htm)")
    p_report.add_argument(
        "--lang",
        help="Report language: " + ", ".join(lang.value for lang in ReportLanguage) + " (default en)",
    )
    p_report.add_argument(
        "--open-description",
        action="store_true",
        default=None,
        help="Expand test descriptions in the report",
    )
    p_report.add_argument("--template", help="Content XSLT (default shipped ReportTemplate.xsl)")
    p_report.add_argument("--i18n-template", help="Localization XSLT (default shipped i18n.xsl)")
    p_report.add_argument(
        "--asset",
        action="append",
        metavar="TEMPLATE:FILENAME",
        help="Extra output rendered from its own template; .css outputs skip localization",
    )
    p_report.add_argument("--intermediate-dir", help="Keep content stage output in this directory")
    p_report.add_argument("--metrics-file", help="Write Prometheus metrics to this textfile")
    p_report.set_defaults(func=cmd_report)

    p_merge = sub.add_parser("merge", help="Write only the merged summary XML")
    p_merge.add_argument("files", nargs="*", help="XML result files, merged in the given order")
    p_merge.add_argument("--out", help="Output file (stdout if omitted)")
    p_merge.set_defaults(func=cmd_merge)

    p_params = sub.add_parser("params", help="Print the content transform parameters as JSON")
    p_params.add_argument("--open-description", action="store_true")
    p_params.set_defaults(func=cmd_params)

    args = p.parse_args(argv)
    if not getattr(args, "cmd", None):
        p.print_help()
        return 0
    configure_logging(args.log_level)
    try:
        args.func(args)
        return 0
    except ReportError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
