from __future__ import annotations

"""
Typer CLI entry point and orchestration of the analysis pipeline.

- `analyze TARGET` finds .java files (traversal.find_java_files for
  directories), loads them into one Project, runs the enabled rules over
  each file and prints the findings (rich tables, or one line per finding
  with --plain).
- `rules` lists the rules and whether the configuration enables them.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from sdklint.config import Config, get_default_config, get_enabled_rules, load_config
from sdklint.context import load_contexts
from sdklint.dispatcher import analyze_contexts
from sdklint.reporting.console import print_findings, print_plain, print_rules
from sdklint.traversal import find_java_files, is_java_file

logger = logging.getLogger(__name__)

app = typer.Typer(help="sdklint - static checks for client library API misuse in Java source.")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _configure_logging(level: str) -> None:
    name = level.upper()
    if name not in LOG_LEVELS:
        raise typer.BadParameter(f"Log level must be one of {', '.join(LOG_LEVELS)}, got: {level}")
    logging.basicConfig(
        level=name,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_path: Optional[Path], rule_ids: Optional[List[str]] = None) -> Config:
    config = load_config(config_path) if config_path is not None else get_default_config()
    config.select(rule_ids)
    return config


def _collect_java_files(target: Path) -> List[Path]:
    """
    Resolve a target path into a list of .java files to analyze.

    - If target is a .java file, return [target]
    - If target is a directory, use traversal.find_java_files()
    - Otherwise, exit with an error.
    """
    if target.is_file():
        if not is_java_file(target):
            raise typer.BadParameter(f"Target file must have .java extension, got: {target}")
        return [target]

    if target.is_dir():
        files = find_java_files(target)
        if not files:
            logger.warning("No .java files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Java file or directory to analyze.",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON rule configuration merged over the defaults."
    ),
    rule: Optional[List[str]] = typer.Option(
        None, "--rule", "-r", help="Run only this rule id (repeatable)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show recommendations."),
    plain: bool = typer.Option(False, "--plain", help="One line per finding, no tables."),
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
) -> None:
    """
    Analyze a single Java file or all .java files under a directory.
    """
    _configure_logging(log_level)
    config = _load_config(config_path, rule)

    if not get_enabled_rules(config):
        typer.echo("No rules are enabled in the current configuration.")
        raise typer.Exit(code=1)

    files = _collect_java_files(target)
    contexts = load_contexts(files, type_stubs=config.type_stubs)
    findings = analyze_contexts(contexts, config)
    logger.info("Analyzed %d file(s): %d finding(s)", len(contexts), len(findings))

    if plain:
        print_plain(findings)
    else:
        print_findings(findings, analyzed_files=[ctx.path for ctx in contexts], verbose=verbose)


@app.command("rules")
def list_rules(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON rule configuration merged over the defaults."
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
) -> None:
    """List the rules and whether the configuration enables them."""
    _configure_logging(log_level)
    config = _load_config(config_path)
    rules = config.create_rules()
    print_rules(rules)
    if not any(r.enabled for r in rules):
        raise typer.Exit(code=1)


def main() -> None:
    """Entry point for the `sdklint` script and `python -m sdklint.main`."""
    app()


if __name__ == "__main__":
    main()
