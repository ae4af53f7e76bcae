# Rich console output: format findings and rule listings for terminal display.

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sdklint.findings.models import Finding
from sdklint.rules.base import Rule

# Severity → Rich style
SEVERITY_STYLE = {
    "error": "bold red",
    "warning": "bold yellow",
    "info": "bold blue",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: str) -> str:
    return SEVERITY_STYLE.get(severity.lower(), DEFAULT_SEVERITY_STYLE)


def _recommendation(finding: Finding) -> Optional[str]:
    """Return the recommendation text (and link) attached to a finding, if any."""
    if finding.fix is None:
        return None
    parts = [p for p in (finding.fix.text, finding.fix.link) if p]
    return " ".join(parts) or None


def _shorten_path(path: str | Path) -> str:
    """Return the path relative to the working directory when it lies under it."""
    p = Path(path)
    try:
        return p.resolve().relative_to(Path.cwd().resolve()).as_posix()
    except ValueError:
        return p.as_posix()


def format_plain(finding: Finding) -> str:
    """One grep-friendly line: path:line:col: SEVERITY [rule] message."""
    loc = finding.location
    return f"{loc.path}:{loc.line}:{loc.column}: {finding.severity.upper()} [{finding.rule_id}] {finding.message}"


def print_findings(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path] | None = None,
    verbose: bool = False,
    console: Console | None = None,
) -> None:
    """
    Print findings grouped by file, colored by severity, with code snippets.
    If verbose, shows the recommendation attached to each rule's findings. If
    analyzed_files is provided, shows a file-by-file summary table.
    """
    console = console or Console()

    if not findings and not analyzed_files:
        console.print(
            Panel(
                "[green]No issues found.[/green]",
                title="sdklint",
                border_style="green",
                box=box.ROUNDED,
            )
        )
        return

    if not findings and analyzed_files:
        _print_file_summary_table([], analyzed_files, console)
        _print_summary(findings, console)
        return

    by_file: dict[str, list[Finding]] = {}
    for f in findings:
        by_file.setdefault(str(f.location.path), []).append(f)

    for path in sorted(by_file):
        file_findings = sorted(by_file[path], key=lambda x: x.sort_key)

        console.print()
        console.print(Panel(
            f"[bold cyan]{_shorten_path(path)}[/bold cyan]",
            box=box.SIMPLE_HEAD,
            border_style="blue",
            padding=(0, 1),
        ))

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Col", justify="right", style="dim", width=4)
        table.add_column("Severity", width=10)
        table.add_column("Rule", width=30)
        table.add_column("Message", style="white")

        for f in file_findings:
            loc = f.location
            table.add_row(
                str(loc.line),
                str(loc.column),
                Text(f.severity.upper(), style=_severity_style(f.severity)),
                Text(f"[{f.rule_id}]", style="dim"),
                Text(f.message),
            )

        console.print(table)

        snippets = [f for f in file_findings if f.location.snippet]
        if snippets:
            for f in snippets:
                first_line = f.location.snippet.strip().splitlines()[0] if f.location.snippet.strip() else ""
                console.print(Text.assemble(("  |-- ", "dim"), first_line))
            console.print()

        if verbose:
            seen_rules: set[str] = set()
            for f in file_findings:
                if f.rule_id in seen_rules:
                    continue
                seen_rules.add(f.rule_id)
                rec = _recommendation(f)
                if rec:
                    console.print(Text.assemble(("  Fix ", "dim"), f"[{f.rule_id}] ", rec))
            if seen_rules:
                console.print()

    if analyzed_files:
        _print_file_summary_table(findings, analyzed_files, console)

    _print_summary(findings, console)


def print_plain(findings: Sequence[Finding], console: Console | None = None) -> None:
    console = console or Console(highlight=False, soft_wrap=True)
    if not findings:
        console.print("No findings.", markup=False)
        return
    for f in sorted(findings, key=lambda x: x.sort_key):
        console.print(format_plain(f), markup=False)


def print_rules(rules: Sequence[Rule], console: Console | None = None) -> None:
    """Print a table of rule ids, names and whether their configuration enables them."""
    console = console or Console()
    table = Table(
        title="Rules",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("Id", style="white")
    table.add_column("Name")
    table.add_column("Status", width=10)
    for rule in rules:
        status = Text("ENABLED", style="bold green") if rule.enabled else Text("DISABLED", style="bold dim")
        table.add_row(rule.id, rule.name, status)
    console.print(table)


def _print_file_summary_table(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path],
    console: Console,
) -> None:
    """Print a table of clean files vs files with findings."""
    by_path: dict[str, int] = {}
    for f in findings:
        key = str(f.location.path)
        by_path[key] = by_path.get(key, 0) + 1

    flagged = [p for p in analyzed_files if str(p) in by_path]
    clean = [p for p in analyzed_files if str(p) not in by_path]

    table = Table(
        title="Files Summary",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Status", width=10)
    table.add_column("Findings", justify="right", width=8)

    for p in sorted(flagged, key=str):
        table.add_row(_shorten_path(p), Text("ISSUES", style="bold yellow"), str(by_path[str(p)]))
    for p in sorted(clean, key=str):
        table.add_row(_shorten_path(p), Text("OK", style="bold green"), "0")

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_summary(findings: Sequence[Finding], console: Console) -> None:
    """Print a compact summary of findings by severity."""
    by_severity: dict[str, int] = {}
    for f in findings:
        s = f.severity.lower()
        by_severity[s] = by_severity.get(s, 0) + 1

    total = len(findings)
    summary_parts = [f"[bold]{total} finding{'s' if total != 1 else ''}[/bold]"]
    for sev in ("error", "warning", "info"):
        if sev in by_severity:
            summary_parts.append(f"[{_severity_style(sev)}]{by_severity[sev]} {sev}[/]")

    console.print()
    console.print(
        Panel(
            " | ".join(summary_parts),
            title="Summary",
            border_style="yellow" if total > 0 else "green",
            box=box.ROUNDED,
        )
    )
