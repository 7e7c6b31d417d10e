from __future__ import annotations

import argparse
import json
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.pretty import Pretty
from rich.syntax import Syntax
from rich.table import Table
from rich_argparse import RawTextRichHelpFormatter
from localcoder_runner import LocalEngine, Mode, TestCase, load_profiles, run_code, run_tests
from localcoder_runner.request import HarnessRequest
from localcoder_runner.runner import DEFAULT_TIMEOUT_SECONDS, CaseResult, RunResult
from localcoder_runner.wrapper import wrap_code

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="lcr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit with status 2.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    """Add profile and timeout flags shared by `run` and `test`.

    Example:
        ```python
        _add_run_options(run_cmd)
        ```
    """
    parser.add_argument(
        "--profile",
        default="minimal",
        help="Runtime profile for the harness process (default: minimal).",
    )
    parser.add_argument(
        "--profile-file",
        help="TOML file with [profiles.<name>] tables (default: bundled profiles).",
    )
    parser.add_argument(
        "--timeout-seconds",
        type=int,
        default=DEFAULT_TIMEOUT_SECONDS,
        help=f"Kill the harness process after this many seconds (default: {DEFAULT_TIMEOUT_SECONDS}).",
    )


def _add_input_options(parser: argparse.ArgumentParser) -> None:
    """Add `--mode` and `--input` flags shared by `run` and `wrap`.

    Example:
        ```python
        _add_input_options(wrap_cmd)
        ```
    """
    parser.add_argument(
        "--mode",
        choices=[m.value for m in Mode],
        default=Mode.EXECUTOR.value,
        help="executor runs the file as-is; test calls solution(input) (default: executor).",
    )
    parser.add_argument(
        "--input",
        dest="input_json",
        help="JSON value passed to solution() in test mode.\nExample: --input '[1, 2, 3]'",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for localcoder-runner.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m lcr",
        description=(
            "localcoder-runner CLI\n"
            "Run code files through the one-shot harness and inspect the results."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m lcr run script.py\n"
            "  python -m lcr run solution.py --mode test --input 41\n"
            "  python -m lcr test solution.py --cases cases.json\n"
            "  python -m lcr wrap solution.py --mode test --input '{\"n\": 3}'\n"
            "  python -m lcr profiles"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Run one file and show logs, result and error.",
        description=(
            "Run a file in a fresh harness process.\n"
            "Exits with 1 when the response carries an error."
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("file")
    _add_input_options(run_cmd)
    _add_run_options(run_cmd)

    test_cmd = sub.add_parser(
        "test",
        help="Run solution() against a JSON list of test cases.",
        description=(
            "Each case runs in its own harness process.\n"
            "Cases file format: [{\"input\": ..., \"expected\": ...}, ...]"
        ),
        epilog=(
            "Example:\n"
            "  python -m lcr test solution.py --cases cases.json --timeout-seconds 2"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    test_cmd.add_argument("file")
    test_cmd.add_argument("--cases", required=True, help="Path to the JSON test cases file.")
    _add_run_options(test_cmd)

    wrap_cmd = sub.add_parser(
        "wrap",
        help="Print the program the harness would execute.",
        description="Show the generated program text without running it.",
        formatter_class=_HELP_FORMATTER,
    )
    wrap_cmd.add_argument("file")
    _add_input_options(wrap_cmd)

    profiles_cmd = sub.add_parser(
        "profiles",
        help="List available runtime profiles.",
        description="List runtime profiles from the bundled or a custom TOML file.",
        formatter_class=_HELP_FORMATTER,
    )
    profiles_cmd.add_argument(
        "--profile-file",
        help="TOML file with [profiles.<name>] tables (default: bundled profiles).",
    )

    return parser


def build_engine(args: argparse.Namespace) -> LocalEngine:
    """Create a LocalEngine from CLI profile flags.

    Example:
        ```python
        engine = build_engine(args)
        ```
    """
    return LocalEngine(profile=args.profile, profile_file=args.profile_file)


def _parse_input(raw: str | None) -> Any:
    """Decode the `--input` JSON value; no flag means `None`.

    Example:
        ```python
        value = _parse_input("[1, 2, 3]")  # [1, 2, 3]
        ```
    """
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"--input is not valid JSON: {exc}") from exc


def _load_cases(path: str) -> list[TestCase]:
    """Read a JSON list of `{"input", "expected"}` objects into test cases.

    Example:
        ```python
        cases = _load_cases("cases.json")
        ```
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError("Cases file must contain a JSON list")
    cases: list[TestCase] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or "expected" not in item:
            raise ValueError(f"Case {index} must be an object with 'input' and 'expected'")
        cases.append(TestCase(input=item.get("input"), expected=item["expected"]))
    return cases


def _print_run(result: RunResult) -> None:
    """Render one run result as a Rich panel.

    Example:
        ```python
        _print_run(run_code("print(1)", LocalEngine()))
        ```
    """
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("logs", escape(result.logs) if result.logs else "[dim](empty)[/dim]")
    table.add_row("result", Pretty(result.result))
    table.add_row("error", f"[red]{escape(result.error)}[/red]" if result.error else "[dim]none[/dim]")
    style = "green" if result.ok else "red"
    _CONSOLE.print(Panel.fit(table, title="Response", border_style=style))


def _print_cases(rows: list[CaseResult]) -> None:
    """Render per-case results as a Rich table.

    Example:
        ```python
        _print_cases(run_tests(code, cases, LocalEngine()))
        ```
    """
    table = Table(title="Test Cases")
    table.add_column("#", style="cyan")
    table.add_column("Input")
    table.add_column("Expected")
    table.add_column("Actual")
    table.add_column("Status")
    for index, row in enumerate(rows, start=1):
        status = "[bold green]PASS[/bold green]" if row.passed else "[bold red]FAIL[/bold red]"
        if row.error:
            status += f"\n[red]{escape(row.error)}[/red]"
        table.add_row(
            str(index),
            Pretty(row.input),
            Pretty(row.expected),
            Pretty(row.actual),
            status,
        )
    _CONSOLE.print(table)


def _print_profiles(profile_file: str | None) -> None:
    """List runtime profiles from the bundled or a custom TOML file.

    Example:
        ```python
        _print_profiles(None)
        ```
    """
    table = Table(title="Runtime Profiles")
    table.add_column("Name", style="cyan")
    table.add_column("Preloaded modules", style="magenta")
    table.add_column("Exposed paths")
    table.add_column("Description")
    for profile in load_profiles(profile_file).values():
        table.add_row(
            profile.name,
            ", ".join(profile.preload_modules) or "-",
            ", ".join(profile.exposed_paths) or "-",
            profile.description,
        )
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `lcr` CLI command handler.

    Example:
        ```python
        code = main(["run", "script.py"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        if args.command == "profiles":
            _print_profiles(args.profile_file)
            return 0

        code = Path(args.file).read_text(encoding="utf-8")

        if args.command == "wrap":
            request = HarnessRequest(
                mode=Mode(args.mode),
                code=code,
                input_data=_parse_input(args.input_json),
            )
            _CONSOLE.print(Syntax(wrap_code(request).text, "python", line_numbers=True))
            return 0
        if args.command == "run":
            result = run_code(
                code,
                build_engine(args),
                mode=args.mode,
                input_data=_parse_input(args.input_json),
                timeout_seconds=args.timeout_seconds,
            )
            _print_run(result)
            return 0 if result.ok else 1
        if args.command == "test":
            rows = run_tests(
                code,
                _load_cases(args.cases),
                build_engine(args),
                timeout_seconds=args.timeout_seconds,
            )
            _print_cases(rows)
            passed = sum(1 for row in rows if row.passed)
            style = "bold green" if passed == len(rows) else "bold red"
            _CONSOLE.print(Panel.fit(f"{passed}/{len(rows)} cases passed", style=style))
            return 0 if passed == len(rows) else 1
    except (OSError, ValueError) as exc:
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {escape(str(exc))}", border_style="red"))
        return 2

    parser.error("Unhandled command")
    return 2
