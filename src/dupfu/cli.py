#!/usr/bin/env python3
"""
dupfu CLI — Command line interface for duplicate file detection and bulk remediation.
Drives the same core engine any other front end would, with console-based interaction.
Destructive actions always verify content and ask for confirmation unless --force is given.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import sys
import os
import time
from pathlib import Path
from typing import Dict, List, Optional, NoReturn
import logging

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    from send2trash import send2trash
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash
except ImportError:
    _MISSING_DEPS.append("xxhash")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from dupfu.commands import ScanCommand
from dupfu.core.errors import FatalError
from dupfu.core.hasher import ALGORITHMS
from dupfu.core.models import ActionResult, GroupSummary, PipelineConfig, ScanParams, ScanResult, StatsSnapshot
from dupfu.services.action_service import ActionExecutor
from dupfu.utils.convert_utils import ConvertUtils

ACTION_CHOICES = ["delete", "move", "export"]

EPILOG_TEXT = """
Examples:
  Find duplicates in the current directory
  %(prog)s .

  Scan Downloads and move duplicates to ~/dups (with confirmation prompt)
  %(prog)s ~/Downloads ~/dups --action move

  Export the list of duplicates to ~/dups/duplicates.txt
  %(prog)s ~/Downloads ~/dups --action export

  Delete duplicates to the system trash without asking (for scripts)
  %(prog)s ~/Downloads --action delete --trash --force
"""


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        # Keyed by fingerprint so a changed group replaces its row instead of appending one
        self.rows: Dict[str, GroupSummary] = {}
        self.command: Optional[ScanCommand] = None

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse and validate command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="dupfu",
            description="dupfu — find duplicate files by content and act on them in bulk",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "root",
            nargs="?",
            default=".",
            help="Directory to scan for duplicates. Default: current directory"
        )
        parser.add_argument(
            "target",
            nargs="?",
            default=None,
            help=f"Destination for move/export. Default: <root>/{PipelineConfig.DEFAULT_TARGET_NAME}"
        )

        # Pipeline options
        parser.add_argument(
            "--workers", "-w",
            type=int,
            default=PipelineConfig.default_workers(),
            metavar='N',
            help="Number of fingerprint workers. Default: CPU count"
        )
        parser.add_argument(
            "--excluded-dirs", "-e",
            nargs="+",
            default=[],
            type=str,
            metavar='',
            dest="excluded_dirs",
            help="Excluded/ignored directories (space separated)"
        )
        parser.add_argument(
            "--algorithm",
            choices=list(ALGORITHMS),
            default=PipelineConfig.DEFAULT_ALGORITHM,
            help="Fingerprint checksum. Default: xxh64"
        )
        parser.add_argument(
            "--file-timeout",
            type=float,
            default=None,
            metavar='SECONDS',
            help="Give up on a single file after this many seconds (useful on network filesystems)"
        )

        # Actions
        parser.add_argument(
            "--action", "-a",
            choices=ACTION_CHOICES,
            default=None,
            help="Bulk action on duplicates after the scan:\n"
                 "  delete : remove duplicate files (see --trash)\n"
                 "  move   : move duplicates into the target directory\n"
                 "  export : write duplicate paths to <target>/duplicates.txt"
        )
        parser.add_argument(
            "--trash",
            action="store_true",
            help="With --action delete: move files to the system trash instead of removing them"
        )
        parser.add_argument(
            "--no-verify",
            action="store_true",
            dest="no_verify",
            help="Skip byte-by-byte comparison with the kept file before delete/move"
        )

        # Output options
        parser.add_argument(
            "--force",
            action="store_true",
            help="Skip confirmation prompt for delete/move (for automation/scripts)"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show live statistics and debug logging"
        )

        return parser.parse_args(args)

    @staticmethod
    def is_interactive() -> bool:
        return sys.stdin.isatty() and sys.stdout.isatty()

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.force and args.action not in ("delete", "move"):
            self.error_exit("--force can only be used with --action delete or --action move")

        if args.trash and args.action != "delete":
            self.error_exit("--trash can only be used with --action delete")

        # Prevent interactive confirmation in non-TTY environments
        if args.action in ("delete", "move") and not args.force:
            if not self.is_interactive():
                self.error_exit(
                    "Cannot request interactive confirmation in non-interactive session.\n"
                    "Use --force flag to proceed without confirmation when piping output or running in scripts."
                )

        root_path = Path(args.root).resolve()
        if not root_path.exists():
            self.error_exit(f"Directory not found: {args.root}")
        if not root_path.is_dir():
            self.error_exit(f"Path is not a directory: {args.root}")

        if args.workers < 1:
            self.error_exit("--workers must be at least 1")

        for excl_dir in args.excluded_dirs:
            excl_path = Path(excl_dir).resolve()
            if not excl_path.exists():
                self.warning(f"Excluded directory not found: {excl_dir}")
            elif not excl_path.is_dir():
                self.warning(f"Excluded path is not a directory: {excl_dir}")

    def create_params(self, args: argparse.Namespace) -> ScanParams:
        """Create ScanParams from CLI arguments."""
        try:
            return ScanParams(
                root_dir=str(Path(args.root).resolve()),
                target_dir=str(Path(args.target).resolve()) if args.target else None,
                workers=args.workers,
                excluded_dirs=[str(Path(d.strip()).resolve()) for d in args.excluded_dirs],
                algorithm=args.algorithm,
                file_timeout=args.file_timeout,
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def group_listener(self, summary: GroupSummary) -> None:
        """Keep one row per group; later updates overwrite earlier ones in place."""
        self.rows[summary.key] = summary

    def stats_listener(self, snapshot: StatsSnapshot) -> None:
        """CLI progress callback - live one-line stats on stderr."""
        if not self.verbose:
            return
        percent = ConvertUtils.percent_to_human(snapshot.duplicate_percent)
        sys.stderr.write(
            f"\r  [{int(snapshot.elapsed_seconds)}s] scanned {snapshot.files_scanned:,} "
            f"({ConvertUtils.bytes_to_human(snapshot.total_bytes)}, "
            f"{ConvertUtils.rate_to_human(snapshot.throughput)}) | "
            f"duplicates {snapshot.duplicate_count:,} ({percent})"
        )
        sys.stderr.flush()

    def run_scan(self, params: ScanParams) -> ScanResult:
        """Execute the scan pipeline."""
        self.command = ScanCommand()
        if self.verbose:
            print(f"Fingerprinting with {params.workers} workers ({params.algorithm})...")

        try:
            result = self.command.execute(
                params,
                group_listener=self.group_listener,
                stats_listener=self.stats_listener,
            )
        except KeyboardInterrupt:
            self.command.cancel()
            raise
        except FatalError as e:
            self.error_exit(str(e))
        except Exception as e:
            self.error_exit(f"Scan failed: {e}")

        if self.verbose:
            sys.stderr.write("\n")
        return result

    def output_results(self, result: ScanResult) -> None:
        """Print the duplicate listing, final stats and per-file errors."""
        if self.quiet:
            return

        if not self.rows:
            print("No duplicate groups found.")
        else:
            print(f"\nFound {len(self.rows)} duplicate groups")
            for row in self.rows.values():
                print(f"\n📁 {row.canonical_path}")
                print(f"   {row.duplicate_count} duplicate(s): {row.duplicates_label}")

        print("\nStats:")
        for line in result.stats.format_lines():
            print(f"   {line}")

        errors = result.report.errors
        if errors:
            print(f"\n⚠️  {len(errors)} file(s) could not be scanned:")
            for error in errors[:5]:
                print(f"  • {error}")
            if len(errors) > 5:
                print(f"  ...and {len(errors) - 5} more")

    def confirm(self, verb: str):
        """Build an interactive confirmation callback for a destructive action."""
        def ask(paths: List[str]) -> bool:
            if not self.is_interactive():
                self.error_exit(
                    "Lost interactive terminal during operation. "
                    "Use --force to proceed in non-interactive environments."
                )
            response = input(f"Are you sure you want to {verb} {len(paths)} files? [y/N]: ")
            return response.strip().lower() in ("y", "yes")
        return ask

    def execute_action(self, args: argparse.Namespace, params: ScanParams, result: ScanResult) -> None:
        """Run the requested bulk action once over a snapshot of the scan result."""
        executor = ActionExecutor.from_result(result)
        if not executor.entries:
            if not self.quiet:
                print("No duplicates to act on.")
            return

        verify = not args.no_verify
        try:
            if args.action == "delete":
                verb = "move to trash" if args.trash else "permanently delete"
                if args.force and not self.quiet:
                    print("⚠️  WARNING: --force flag skips confirmation. Proceeding with deletion...")
                outcome = executor.delete(
                    use_trash=args.trash,
                    verify=verify,
                    confirm=None if args.force else self.confirm(verb),
                )
                done = "Deleted"
            elif args.action == "move":
                outcome = executor.move(
                    params.target_dir,
                    verify=verify,
                    confirm=None if args.force else self.confirm(f"move to {params.target_dir}"),
                )
                done = f"Moved to {params.target_dir}:"
            else:
                outcome = executor.export(params.target_dir)
                done = f"Exported to {outcome.destination}:"
        except FatalError as e:
            self.error_exit(str(e))

        self.report_action(outcome, done)

    def report_action(self, outcome: ActionResult, done: str) -> None:
        if outcome.cancelled:
            print("Action cancelled by user.")
            return

        if outcome.errors:
            total = outcome.success_count + outcome.failed_count
            print(f"\n⚠️  Partial success: {outcome.success_count}/{total} files.")
            for error in outcome.errors[:5]:  # Show first 5 errors
                print(f"  • {error}")
            if len(outcome.errors) > 5:
                print(f"  ...and {len(outcome.errors) - 5} more files")
        elif not self.quiet:
            print(f"✅ {done} {outcome.success_count} duplicate file(s).")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> None:
        """Main entry point with conditional output behavior."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger("dupfu").setLevel(logging.DEBUG)

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet:
            print(f"Scanning directory: {params.root_dir}")

        result = self.run_scan(params)
        self.output_results(result)

        if args.action:
            self.execute_action(args, params, result)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
