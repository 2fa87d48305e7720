"""
CLI entry point for the keyguard-check command.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import resolve_config, KeyguardConfig
from .errors import KeyguardConfigError
from .guard import CheckResult, check_config_text, EXIT_INVALID
from .version import __version__

logger = logging.getLogger("keyguard.cli")

EXIT_USAGE = 3


# =============================================================================
# TARGETS
# =============================================================================

def iter_targets(paths: list[str], config: KeyguardConfig) -> list[Path]:
    """Expand files and directories into the list of files to check."""
    targets: list[Path] = []
    exclude = set(config.exclude)
    extensions = {ext.lower() for ext in config.extensions}
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for child in sorted(path.rglob("*")):
                if exclude.intersection(child.relative_to(path).parts):
                    continue
                if child.is_file() and child.suffix.lower() in extensions:
                    targets.append(child)
        else:
            targets.append(path)
    return targets


def check_file(path: Path, config: KeyguardConfig) -> CheckResult:
    """Read and check one file, reporting read failures as errors."""
    source = str(path)
    try:
        size = path.stat().st_size
        if size > config.max_bytes:
            return CheckResult(
                source=source,
                errors=[f"File too large ({size} bytes, limit {config.max_bytes})"],
                invalid=True,
            )
        text = path.read_text(encoding=config.encoding)
    except FileNotFoundError:
        return CheckResult(source=source, errors=["File not found"], invalid=True)
    except (OSError, UnicodeDecodeError) as e:
        return CheckResult(source=source, errors=[f"Cannot read file: {e}"], invalid=True)
    return check_config_text(text, source=source, strict=config.strict)


# =============================================================================
# OUTPUT
# =============================================================================

def format_check_summary(results: list[CheckResult]) -> str:
    """Format results as human-readable summary."""
    lines = [
        "=" * 60,
        "KEYGUARD DUPLICATE KEY CHECK",
        "=" * 60,
    ]
    for result in results:
        icon = "✓" if result.ok else "✗"
        lines.append(f"  [{icon}] {result.source}")
        for err in result.errors:
            lines.append(f"      └─ {err}")
        for warn in result.warnings:
            lines.append(f"      ! {warn}")

    failed = sum(1 for r in results if not r.ok)
    lines.extend([
        "",
        f"Checked:     {len(results)}",
        f"Failed:      {failed}",
        "=" * 60,
    ])
    return "\n".join(lines)


def format_check_json(results: list[CheckResult]) -> str:
    """Format results as JSON."""
    output = {
        "ok": all(r.ok for r in results),
        "results": [r.to_dict() for r in results],
    }
    return json.dumps(output, indent=2)


# =============================================================================
# MAIN
# =============================================================================

def main():
    """Entry point for keyguard-check command."""
    parser = argparse.ArgumentParser(
        description="Detect duplicate keys in JSON config text before it is saved",
        epilog="Exit codes: 0=clean, 1=duplicate key, 2=invalid or unreadable, 3=config/usage error",
    )
    parser.add_argument("paths", nargs="*",
                        help="Files or directories to check ('-' reads stdin)")
    parser.add_argument("--config", "-c", help="Path to keyguard.yaml")
    parser.add_argument("--strict", action="store_true",
                        help="Also require well-formed JSON")
    parser.add_argument("--stdin", action="store_true", help="Read JSON text from stdin")
    parser.add_argument("--format", choices=["summary", "json"], default="summary",
                        help="Output format (default: summary)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"keyguard-check {__version__}")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = resolve_config(args.config)
    except KeyguardConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    if args.strict:
        config.strict = True

    read_stdin = args.stdin or "-" in args.paths
    paths = [p for p in args.paths if p != "-"]
    if not paths and not read_stdin:
        print("Error: no input given. Pass file paths or --stdin.", file=sys.stderr)
        return EXIT_USAGE

    results: list[CheckResult] = []
    if read_stdin:
        results.append(check_config_text(sys.stdin.read(), source="<stdin>", strict=config.strict))
    for target in iter_targets(paths, config):
        logger.debug("Checking %s", target)
        results.append(check_file(target, config))

    if not results:
        print("Error: no matching files found.", file=sys.stderr)
        return EXIT_INVALID

    if args.format == "json":
        print(format_check_json(results))
    else:
        print(format_check_summary(results))

    return max(r.exit_code for r in results)


if __name__ == "__main__":
    sys.exit(main())
