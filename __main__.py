"""CLI entry point for screen-builder.

This module acts as the central entry point for the project's CLI tools.
It delegates commands to the appropriate submodules or runs specific tasks.
"""

import argparse
import json
import subprocess
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from screen_builder.config import (
    EnvVar,
    get_environment,
    get_environment_info,
    get_log_level,
    list_environment_variables,
)
from screen_builder.core import get_logger, setup_logging

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


# =============================================================================
# Input Helpers
# =============================================================================


def _read_json(path: Path) -> Any:
    """Read a JSON document, "-" meaning stdin."""
    text = sys.stdin.read() if str(path) == "-" else path.read_text(encoding="utf-8")
    return json.loads(text)


def _parse_assignment(text: str) -> tuple[str, Any]:
    """Parse ``field=value``; the value is JSON if it parses, else a string."""
    field_name, sep, raw = text.partition("=")
    if not sep or not field_name:
        raise argparse.ArgumentTypeError(f"Expected field=value, got '{text}'")
    try:
        return field_name, json.loads(raw)
    except json.JSONDecodeError:
        return field_name, raw


def _collect_values(args: argparse.Namespace) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if args.values:
        values.update(_read_json(args.values))
    for field_name, value in args.set or []:
        values[field_name] = value
    return values


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "config",
        type=Path,
        help="Screen configuration JSON file ('-' for stdin)",
    )


def _add_value_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--values",
        type=Path,
        help="JSON file with form values keyed by field",
    )
    parser.add_argument(
        "--set",
        "-s",
        type=_parse_assignment,
        action="append",
        metavar="FIELD=VALUE",
        help="Set a form value (repeatable, VALUE parsed as JSON when possible)",
    )


def _load_config(path: Path):
    from screen_builder.schema import load_screen_config

    return load_screen_config(_read_json(path))


# =============================================================================
# Analysis Commands
# =============================================================================


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle the validate command."""
    from screen_builder.validation import validate_screen_config

    require_label = args.require_label or get_environment(
        EnvVar.SCREEN_REQUIRE_WIDGET_LABEL
    )
    result = validate_screen_config(_read_json(args.config), require_label=require_label)
    if result.valid:
        logger.info(f"{args.config}: valid")
        return 0
    for error in result.errors:
        print(error)
    logger.error(f"{args.config}: {len(result.errors)} error(s)")
    return 1


def cmd_lint(args: argparse.Namespace) -> int:
    """Handle the lint command."""
    from screen_builder.validation import lint_screen_config

    issues = lint_screen_config(_load_config(args.config))
    for issue in issues:
        print(f"{issue.widget_id}: [{issue.issue_type}] {issue.message}")
    if issues:
        logger.warning(f"{args.config}: {len(issues)} issue(s)")
    else:
        logger.info(f"{args.config}: no issues")
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    """Handle the resolve command."""
    from screen_builder.dependency import resolve

    resolved = resolve(_load_config(args.config), _collect_values(args))
    print(
        json.dumps(
            {widget_id: state.to_dict() for widget_id, state in resolved.items()},
            indent=2,
        )
    )
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    """Handle the preview command."""
    from screen_builder.render import preview_screen

    print(preview_screen(_load_config(args.config), _collect_values(args)))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    from screen_builder.rules import check_values

    errors = check_values(_load_config(args.config), _collect_values(args))
    for error in errors:
        print(f"{error.field}: {error.message}")
    return 1 if errors else 0


def cmd_schema(args: argparse.Namespace) -> int:
    """Handle the schema command."""
    from screen_builder.schema import export_json_schema

    text = json.dumps(export_json_schema(), indent=2)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"JSON schema saved to {args.output}")
    else:
        print(text)
    return 0


ANALYSIS_COMMANDS = {
    "validate": (cmd_validate, "Check the structure of a screen configuration"),
    "lint": (cmd_lint, "Report dependency and field authoring mistakes"),
    "resolve": (cmd_resolve, "Print visible/enabled/required per widget"),
    "preview": (cmd_preview, "Print the rendered screen as a text tree"),
    "check": (cmd_check, "Check form values against required flags and rules"),
}


def handle_analysis_command(command: str, argv: list[str]) -> int:
    """Parse and run one of the single-file analysis commands."""
    func, description = ANALYSIS_COMMANDS[command]
    parser = argparse.ArgumentParser(prog=f"python . {command}", description=description)
    _add_config_argument(parser)
    if command == "validate":
        parser.add_argument(
            "--require-label",
            action="store_true",
            help="Also require widget labels",
        )
    if command in ("resolve", "preview", "check"):
        _add_value_arguments(parser)

    args = parser.parse_args(argv)
    try:
        return func(args)
    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename}")
        return 1
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON: {e}")
        return 1
    except ValidationError as e:
        logger.error(f"Screen configuration does not match the schema:\n{e}")
        return 1


# =============================================================================
# Screens Command (Stored Configurations)
# =============================================================================


def cmd_screens_list(args: argparse.Namespace, manager) -> int:
    for record in manager.list_screens(active_only=args.active):
        status = "" if record.is_active else " (inactive)"
        print(f"{record.screen_key:<24} {record.screen_name}{status}  [{record.id}]")
    return 0


def cmd_screens_show(args: argparse.Namespace, manager) -> int:
    print(json.dumps(manager.get_screen_by_key(args.key).to_dict(), indent=2))
    return 0


def cmd_screens_import(args: argparse.Namespace, manager) -> int:
    record = manager.create_screen(
        screen_key=args.key,
        screen_name=args.name,
        config=_read_json(args.config),
        description=args.description,
    )
    logger.info(f"Imported {record.screen_key} as {record.id}")
    return 0


def cmd_screens_delete(args: argparse.Namespace, manager) -> int:
    record = manager.get_screen_by_key(args.key)
    manager.delete_screen(record.id)
    logger.info(f"Deleted {args.key}")
    return 0


def handle_screens_command(argv: list[str]) -> int:
    """Handle screens subcommands."""
    from screen_builder.screens import (
        DuplicateScreenKeyError,
        InvalidScreenConfigError,
        ScreenManager,
        ScreenNotFoundError,
    )

    parser = argparse.ArgumentParser(
        prog="python . screens",
        description="Manage stored screen configurations",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help=f"Database path (default: {get_environment(EnvVar.SCREEN_DB_PATH)})",
    )
    subparsers = parser.add_subparsers(dest="subcommand", required=True)

    list_parser = subparsers.add_parser("list", help="List stored screens")
    list_parser.add_argument("--active", action="store_true", help="Only active screens")
    list_parser.set_defaults(func=cmd_screens_list)

    show_parser = subparsers.add_parser("show", help="Print a stored screen")
    show_parser.add_argument("key", help="Screen key")
    show_parser.set_defaults(func=cmd_screens_show)

    import_parser = subparsers.add_parser("import", help="Validate and store a screen")
    import_parser.add_argument("key", help="Screen key")
    import_parser.add_argument("name", help="Screen name")
    _add_config_argument(import_parser)
    import_parser.add_argument("--description", "-d", default=None)
    import_parser.set_defaults(func=cmd_screens_import)

    delete_parser = subparsers.add_parser("delete", help="Delete a stored screen")
    delete_parser.add_argument("key", help="Screen key")
    delete_parser.set_defaults(func=cmd_screens_delete)

    args = parser.parse_args(argv)
    manager = ScreenManager(db_path=args.db)
    try:
        return args.func(args, manager)
    except (ScreenNotFoundError, DuplicateScreenKeyError) as e:
        logger.error(str(e))
        return 1
    except InvalidScreenConfigError as e:
        for error in e.errors:
            print(error)
        logger.error(f"{len(e.errors)} validation error(s)")
        return 1
    finally:
        manager.close()


# =============================================================================
# Development Commands
# =============================================================================


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest with provided arguments and test tier options.

    Usage:
        python . test                # Run all tests
        python . test --unit         # Run only unit tests
        python . test --integration  # Run integration tests
        python . test -k "binding"   # Run tests matching pattern
    """
    tier_markers = {
        "--unit": ["-m", "unit"],
        "--integration": ["-m", "integration"],
        "--all": [],
    }

    pytest_args: list[str] = []
    remaining_args: list[str] = []
    for arg in extra_args:
        if arg in tier_markers:
            pytest_args.extend(tier_markers[arg])
        else:
            remaining_args.append(arg)

    cmd = [sys.executable, "-m", "pytest", *pytest_args, *remaining_args]
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


def cmd_env(_argv: list[str]) -> int:
    """Show environment variables and their resolved values."""
    for var in list_environment_variables():
        info = get_environment_info(var)
        print(f"{info.name:<30} {get_environment(var)!s:<30} {info.description}")
    return 0


def handle_serve_command(argv: list[str]) -> int:
    """Run the MCP server."""
    from screen_builder.mcp.server import main as serve_main

    return serve_main(argv)


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: python . {command} [args]")
    print("\n=== Screen Configurations ===")
    for name, (_, description) in ANALYSIS_COMMANDS.items():
        print(f"  {name:<10} {description}")
    print("  schema     Export the JSON schema of a screen configuration")
    print("  screens    Manage stored screens (list, show, import, delete)")
    print("\n=== Server ===")
    print("  serve      Run MCP server (stdio, http or sse)")
    print("\n=== Development ===")
    print("  test       Run pytest (--unit, --integration, --all)")
    print("  env        Show environment configuration")
    print("\nExamples:")
    print("  python . validate screen.json --require-label")
    print("  python . preview screen.json -s contactMethod=email")
    print("  python . check screen.json --values answers.json")
    print("  python . screens import motor-quote 'Motor quote' screen.json")
    print("  python . serve --transport http --port 18080")


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        show_help()
        return 1

    command = sys.argv[1]
    rest_args = sys.argv[2:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    if command == "serve":
        # The server configures its own logging.
        return handle_serve_command(rest_args)

    commands = {
        "schema": lambda: cmd_schema(_schema_args(rest_args)),
        "screens": lambda: handle_screens_command(rest_args),
        "test": lambda: cmd_test(rest_args),
        "env": lambda: cmd_env(rest_args),
    }

    setup_logging(get_log_level())

    if command in ANALYSIS_COMMANDS:
        return handle_analysis_command(command, rest_args)
    if command in commands:
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


def _schema_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python . schema",
        description="Export the JSON schema of a screen configuration",
    )
    parser.add_argument("--output", "-o", type=Path, help="Write to file instead of stdout")
    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(main())
