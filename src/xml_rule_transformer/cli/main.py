"""Main CLI entry point for the xml-rule-transform command-line tool.

Applies declarative JSON rule files (or an importable Python callback) to XML
files, and checks files for well-formedness.
"""

import argparse
import importlib
import json
import re
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from xml_rule_transformer import __version__
from xml_rule_transformer.api import transform_with_result
from xml_rule_transformer.engine import RECOGNIZED_KEYS, SUPPRESS
from xml_rule_transformer.engine.rules import TRANSFORM_KEYS
from xml_rule_transformer.events import XMLEventReader
from xml_rule_transformer.shared import (
    TransformerConfig,
    TransformerError,
    configure_logging,
    get_logger,
)

XML_SUFFIXES = {".xml", ".xhtml", ".svg", ".tei"}
WILDCARD = "*"


def strip_tags(text: str) -> str:
    """Remove all markup from ``text``."""
    return re.sub(r"<[^>]*>", "", text)


BUILTIN_TRANSFORMS: Dict[str, Callable[[str], str]] = {
    "upper": str.upper,
    "lower": str.lower,
    "strip": str.strip,
    "strip-tags": strip_tags,
}


class JSONRuleCallback:
    """Rule callback backed by a JSON mapping of tag names to rule sets.

    A tag maps to ``false`` (suppress), ``null`` (no change) or an object of
    rule keys. ``"*"`` applies to every tag without its own entry. Transform
    keys name one of the built-in transforms.
    """

    def __init__(self, rules: Dict[str, Any], marker: str = "@") -> None:
        if not isinstance(rules, dict):
            raise TransformerError("Rule file must contain a JSON object")
        self.rules: Dict[str, Any] = {}
        for tag, rule in rules.items():
            self.rules[tag] = self._compile(tag, rule, marker)

    @staticmethod
    def _compile(tag: str, rule: Any, marker: str) -> Any:
        if rule is None or rule is False:
            return rule
        if not isinstance(rule, dict):
            raise TransformerError(
                f"Rule for <{tag}> must be an object, false or null"
            )
        compiled = dict(rule)
        for key, value in rule.items():
            if key in TRANSFORM_KEYS:
                if value not in BUILTIN_TRANSFORMS:
                    raise TransformerError(
                        f'Unknown transform "{value}" for <{tag}>; '
                        f"available: {sorted(BUILTIN_TRANSFORMS)}"
                    )
                compiled[key] = BUILTIN_TRANSFORMS[value]
            elif key not in RECOGNIZED_KEYS and not key.startswith(marker):
                raise TransformerError(f'Unexpected key "{key}" in rule for <{tag}>')
        return compiled

    @classmethod
    def from_file(cls, rules_path: Path, marker: str = "@") -> "JSONRuleCallback":
        with rules_path.open(encoding="utf-8") as f:
            return cls(json.load(f), marker)

    def __call__(self, tag: str, attributes: Dict[str, str], kind: Any) -> Any:
        rule = self.rules.get(tag, self.rules.get(WILDCARD))
        if rule is False:
            return SUPPRESS
        return rule


def load_callback(reference: str) -> Callable[..., Any]:
    """Import a callback given as ``module:function``."""
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise TransformerError(f"Callback must be given as module:function, got '{reference}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise TransformerError(f"Module '{module_name}' has no attribute '{attribute}'") from e


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.transformer_config = TransformerConfig.default()
        self.max_workers: Optional[int] = None
        self.output_suffix = "_transformed"
        self.output_format = "text"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The optional ``"transformer"`` object holds ``TransformerConfig``
        fields; ``"max_workers"``, ``"output_suffix"`` and ``"output_format"``
        configure the command itself.
        """
        config = cls()
        if not config_path.exists():
            return config
        with config_path.open(encoding="utf-8") as f:
            data = json.load(f)
        if "transformer" in data:
            config.transformer_config = TransformerConfig.from_dict(data["transformer"])
        config.max_workers = data.get("max_workers", config.max_workers)
        config.output_suffix = data.get("output_suffix", config.output_suffix)
        config.output_format = data.get("output_format", config.output_format)
        return config


class ProgressTracker:
    """Progress display on stderr for multi-file runs."""

    def __init__(self, total: int, description: str = "Transforming") -> None:
        self.total = total
        self.completed = 0
        self.failed = 0
        self.description = description
        self.start_time = time.time()
        self.last_update = 0.0

    def update(self, succeeded: bool = True) -> None:
        """Record one finished file and redraw if needed."""
        self.completed += 1
        if not succeeded:
            self.failed += 1
        current_time = time.time()
        if current_time - self.last_update >= 1.0 or self.completed >= self.total:
            self._display_progress()
            self.last_update = current_time

    def _display_progress(self) -> None:
        if self.total <= 1:
            return
        percentage = (self.completed / self.total) * 100
        elapsed = time.time() - self.start_time
        progress_bar = "=" * int(percentage // 4)
        print(f"\r{self.description}: [{progress_bar:<25}] "
              f"{self.completed}/{self.total} ({self.failed} failed, {elapsed:.1f}s)",
              end="", file=sys.stderr)
        if self.completed >= self.total:
            print(file=sys.stderr)


class XMLFileTransformer:
    """Applies one callback to files and collects per-file reports."""

    def __init__(self, callback: Callable[..., Any], config: CLIConfig) -> None:
        self.callback = callback
        self.config = config
        self.logger = get_logger(__name__, None, "cli_transformer")

    def output_path_for(self, file_path: Path, output_dir: Optional[Path]) -> Path:
        name = f"{file_path.stem}{self.config.output_suffix}{file_path.suffix}"
        return (output_dir or file_path.parent) / name

    def transform_file(self, file_path: Path, output_path: Optional[Path]) -> Dict[str, Any]:
        """Transform one file; write it to ``output_path`` or return the output."""
        report: Dict[str, Any] = {"file": str(file_path), "success": False}
        logger = self.logger.bind(file_path=str(file_path))
        try:
            result = transform_with_result(
                file_path.read_bytes(),
                self.callback,
                config=self.config.transformer_config,
            )
        except Exception as e:
            # Per-file failures, including those raised by user callbacks, are
            # reported and the batch continues.
            logger.warning(
                "File transformation failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            report["error"] = str(e) or type(e).__name__
            report["error_type"] = type(e).__name__
            return report

        logger.debug("File transformed", extra={"output_length": len(result.output)})

        report.update({
            "success": True,
            "metrics": result.metrics.to_dict(),
        })
        if output_path is None:
            report["output"] = result.output
        else:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(result.output, encoding="utf-8")
            report["output_file"] = str(output_path)
        return report

    def find_xml_files(self, path: Path, recursive: bool = False) -> Iterator[Path]:
        """Find XML files in path."""
        if path.is_file():
            yield path
        elif path.is_dir():
            candidates = path.rglob("*") if recursive else path.glob("*")
            for candidate in sorted(candidates):
                if candidate.is_file() and candidate.suffix.lower() in XML_SUFFIXES:
                    yield candidate

    def batch_transform(
        self,
        paths: List[Path],
        output_dir: Optional[Path],
        recursive: bool = False,
    ) -> List[Dict[str, Any]]:
        """Transform every XML file under ``paths`` into ``output_dir``."""
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_xml_files(path, recursive))
        if not all_files:
            return []

        results = []
        progress = ProgressTracker(len(all_files))
        jobs = {file_path: self.output_path_for(file_path, output_dir) for file_path in all_files}

        if len(all_files) == 1 or self.config.max_workers == 1:
            for file_path, output_path in jobs.items():
                report = self.transform_file(file_path, output_path)
                results.append(report)
                progress.update(report["success"])
        else:
            with ProcessPoolExecutor(max_workers=self.config.max_workers) as executor:
                future_to_file = {
                    executor.submit(self.transform_file, file_path, output_path): file_path
                    for file_path, output_path in jobs.items()
                }
                for future in as_completed(future_to_file):
                    report = future.result()
                    results.append(report)
                    progress.update(report["success"])

        results.sort(key=lambda report: report["file"])
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-rule-transform",
        description="Rule-driven streaming XML transformation",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Quiet output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    apply_parser = subparsers.add_parser("apply", help="Transform XML files")
    apply_parser.add_argument("paths", nargs="+", type=Path, help="XML files or directories")
    source = apply_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--rules", type=Path, help="JSON rule file")
    source.add_argument("--callback", help="Python callback as module:function")
    apply_parser.add_argument(
        "--no-cdata", action="store_true", help="Emit CDATA sections as escaped text"
    )
    apply_parser.add_argument(
        "--compact", action="store_true", help="Render empty elements as <e/>"
    )
    apply_parser.add_argument("--config", "-c", type=Path, help="Configuration file path")
    apply_parser.add_argument(
        "--output", "-o", type=Path, help="Output file for a single input (default: stdout)"
    )
    apply_parser.add_argument(
        "--output-dir", "-d", type=Path, help="Output directory for multiple inputs"
    )
    apply_parser.add_argument(
        "--suffix", help="Suffix for output file names (default: _transformed)"
    )
    apply_parser.add_argument(
        "--recursive", "-r", action="store_true", help="Recursively process directories"
    )
    apply_parser.add_argument("--workers", "-w", type=int, help="Number of parallel workers")
    apply_parser.add_argument(
        "--format", "-f", choices=["json", "text"], help="Summary format for batch runs"
    )

    check_parser = subparsers.add_parser("check", help="Check XML files are well-formed")
    check_parser.add_argument("paths", nargs="+", type=Path, help="XML files to check")
    check_parser.add_argument(
        "--format", "-f", choices=["json", "text"], default="text", help="Output format"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format batch results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No files processed."
    successful = sum(1 for r in results if r.get("success", False))
    lines = [f"Transformed {successful} of {len(results)} files", "-" * 60]
    for result in results:
        if result.get("success", False):
            metrics = result.get("metrics", {})
            lines.append(f"OK   {result['file']} -> {result.get('output_file', 'stdout')}")
            lines.append(
                f"     Elements: {metrics.get('elements_processed', 0)}, "
                f"Suppressed: {metrics.get('elements_suppressed', 0)}, "
                f"Time: {metrics.get('processing_time_ms', 0):.1f}ms"
            )
        else:
            lines.append(f"FAIL {result['file']}")
            lines.append(f"     Error: {result.get('error', '')}")
    return "\n".join(lines)


def _build_config(args: argparse.Namespace) -> CLIConfig:
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
    overrides: Dict[str, Any] = {}
    if args.no_cdata:
        overrides["keep_cdata"] = False
    if args.compact:
        overrides["self_closing_style"] = "compact"
    if overrides:
        config.transformer_config = config.transformer_config.override(**overrides)
    if args.workers:
        config.max_workers = args.workers
    if args.suffix:
        config.output_suffix = args.suffix
    if args.format:
        config.output_format = args.format
    return config


def cmd_apply(args: argparse.Namespace) -> int:
    """Handle apply command."""
    try:
        config = _build_config(args)
        if args.rules:
            callback = JSONRuleCallback.from_file(
                args.rules, config.transformer_config.attribute_marker
            )
        else:
            callback = load_callback(args.callback)
    except (TransformerError, OSError, ValueError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not (args.verbose or args.quiet):
        configure_logging(config.transformer_config.logging_level)

    processor = XMLFileTransformer(callback, config)

    single = len(args.paths) == 1 and args.paths[0].is_file() and not args.output_dir
    if single:
        report = processor.transform_file(args.paths[0], args.output)
        if not report["success"]:
            print(f"Error: {report['error']}", file=sys.stderr)
            return 1
        if args.output is None:
            sys.stdout.write(report["output"])
        elif not args.quiet:
            print(f"Written to {args.output}", file=sys.stderr)
        return 0

    try:
        results = processor.batch_transform(args.paths, args.output_dir, args.recursive)
    except KeyboardInterrupt:
        print("\nProcessing interrupted by user", file=sys.stderr)
        return 1

    if not args.quiet:
        print(format_results(results, config.output_format))
    if not results:
        return 1
    return 0 if all(r["success"] for r in results) else 1


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    reader = XMLEventReader()
    results = []
    for path in args.paths:
        entry: Dict[str, Any] = {"file": str(path)}
        try:
            events = reader.read(path.read_bytes())
        except (TransformerError, OSError) as e:
            entry.update({"well_formed": False, "error": str(e)})
        else:
            entry.update({
                "well_formed": True,
                "events": len(events),
                "elements": sum(1 for event in events if event.is_element),
            })
        results.append(entry)

    if args.format == "json":
        print(json.dumps(results, indent=2))
    else:
        valid_count = sum(1 for r in results if r["well_formed"])
        print(f"Checked {len(results)} files, {valid_count} well-formed")
        print("-" * 50)
        for result in results:
            status = "OK  " if result["well_formed"] else "FAIL"
            print(f"{status} {result['file']}")
            if not result["well_formed"]:
                print(f"     Error: {result['error']}")

    return 0 if all(r["well_formed"] for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")

    try:
        if args.command == "apply":
            return cmd_apply(args)
        if args.command == "check":
            return cmd_check(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
