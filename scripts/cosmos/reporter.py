"""
Operator-facing output for the analytical storage tool.

The Reporter renders the preview listing, the "ready to disable" notice, the
per-container progress lines and the final summary. Normal output goes to the
configured stdout stream; failures go to the stderr stream. Each stream gets
its own rich Console, built once from the RenderConfig; rich decides on color
from the terminal and NO_COLOR unless the RenderConfig forces a choice.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TextIO

import pandas as pd
from rich.console import Console
from rich.markup import escape

from scripts.cosmos.models import (
    EnabledContainer,
    EnumerationResult,
    RunResult,
    sort_containers,
)

RULE = "=" * 43


@dataclass
class RenderConfig:
    """Output streams and color decision for the Reporter.

    color=None lets rich detect color support per stream; True or False
    forces the decision.
    """

    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    color: bool | None = None

    @classmethod
    def detect(cls, no_color: bool = False) -> "RenderConfig":
        """Leave color to rich unless --no-color was given."""
        return cls(stdout=sys.stdout, stderr=sys.stderr, color=False if no_color else None)

    def console(self, stream: TextIO) -> Console:
        if self.color is None:
            options = {}
        elif self.color:
            options = {"force_terminal": True, "color_system": "standard"}
        else:
            options = {"no_color": True, "color_system": None}
        return Console(
            file=stream,
            highlight=False,
            emoji=False,
            soft_wrap=True,
            **options,
        )


class Reporter:
    """Render listings, progress and summaries for one run."""

    def __init__(self, render_config: RenderConfig | None = None):
        self.render = render_config or RenderConfig()
        self.stdout = self.render.console(self.render.stdout)
        self.stderr = self.render.console(self.render.stderr)

    def _out(self, text: str = "", color: str | None = None) -> None:
        if color:
            text = f"[{color}]{text}[/{color}]"
        self.stdout.print(text)

    def _err(self, text: str, color: str | None = None) -> None:
        if color:
            text = f"[{color}]{text}[/{color}]"
        self.stderr.print(text)

    # ====================================
    # RUN HEADER
    # ====================================

    def header(self, account_name: str, resource_group: str) -> None:
        self._out()
        self._out("Cosmos DB Analytical Storage Management", "cyan")
        self._out(
            f"Account: {escape(account_name)} | Resource Group: {escape(resource_group)}",
            "white",
        )
        self._out()

    def processing_databases(self, database_count: int) -> None:
        self._out(f"Processing {database_count} database(s)...", "green")
        self._out()

    def _section(self, title: str) -> None:
        self._out(RULE, "cyan")
        self._out(title, "cyan")
        self._out(RULE, "cyan")

    def _grouped_listing(
        self, containers: list[EnabledContainer], database_indent: str = ""
    ) -> None:
        """Print containers grouped under their database, in sorted order."""
        current_database = None
        for container in sort_containers(containers):
            if container.database_name != current_database:
                self._out(f"{database_indent}{escape(container.database_name)}", "cyan")
                current_database = container.database_name
            name = escape(container.container_name)
            ttl = escape(str(container.analytical_ttl))
            self._out(f"    [yellow]{name}[/yellow] (TTL: {ttl})")

    # ====================================
    # PREVIEW MODE
    # ====================================

    def render_preview(self, result: EnumerationResult) -> None:
        """Render the --list-enabled report. Never triggers any mutation."""
        self._section("CONTAINERS WITH ANALYTICAL STORAGE ENABLED")

        if not result.enabled:
            self._out()
            self._out("No containers with analytical storage enabled.", "green")
            self._out()
            return

        self._out()
        self._grouped_listing(result.enabled)
        self._out()
        self._out(
            f"Total: {result.enabled_database_count} database(s), "
            f"{len(result.enabled)} container(s)",
            "white",
        )
        self._out()
        self._out("Run without --list-enabled to disable these containers.", "magenta")
        self._out()

    # ====================================
    # SUMMARY MODE
    # ====================================

    def render_summary_header(self) -> None:
        self._section("SUMMARY")

    def nothing_to_disable(self) -> None:
        self._out("No databases have containers with analytical storage enabled.", "green")
        self._out()

    def render_pending(self, containers: list[EnabledContainer]) -> None:
        """Render the notice listing everything that is about to be disabled."""
        self._out()
        self._out("Containers ready to disable (previously enabled):", "yellow")
        self._grouped_listing(containers, database_indent="  ")

    def confirmation_prompt(self, count: int) -> str:
        return (
            f"\nDo you want to disable analytical storage for {count} container(s)? "
            "This action cannot be undone. [y/N]: "
        )

    def cancelled(self) -> None:
        self._out("Operation cancelled.", "yellow")
        self._out()

    def disabling(self, container: EnabledContainer) -> None:
        self._out(f"Disabling {escape(container.label)}...", "yellow")

    def succeeded(self, container: EnabledContainer) -> None:
        self._out(f"✓ Successfully disabled {escape(container.label)}", "green")

    def failed(self, container: EnabledContainer) -> None:
        self._err(f"✗ Failed to disable {escape(container.label)}", "red")

    def completed(self, result: RunResult) -> None:
        self._out()
        self._out(f"Operation completed. Containers disabled: {result.disabled_count}", "green")
        self._out()


def save_enabled_csv(result: EnumerationResult, output_path: str) -> None:
    """Save the enabled containers found during a preview run to CSV."""
    df = pd.DataFrame(
        [c.model_dump() for c in sort_containers(result.enabled)],
        columns=["database_name", "container_name", "analytical_ttl"],
    )
    df.to_csv(output_path, index=False)


def save_outcomes_csv(result: RunResult, output_path: str) -> None:
    """Save the per-container outcome of a disable run to CSV."""
    rows = [
        {
            "database_name": o.container.database_name,
            "container_name": o.container.container_name,
            "analytical_ttl": o.container.analytical_ttl,
            "status": "disabled" if o.succeeded else "failed",
            "error_message": o.error_message,
        }
        for o in result.outcomes
    ]
    df = pd.DataFrame(
        rows,
        columns=[
            "database_name",
            "container_name",
            "analytical_ttl",
            "status",
            "error_message",
        ],
    )
    df.to_csv(output_path, index=False)
