"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, spinners, the page tree, configuration tables and
save summaries. Supports verbosity levels and --no-color flag.
"""

from contextlib import contextmanager
from typing import Any, Iterator, List, Mapping, Optional

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner
from rich.table import Table
from rich.tree import Tree

from src.content_tree.models import OperationResult, PageNode, TreeNode
from src.site_config.models import ConfigSaveResult, SchemaCategory


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Output verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Operation completed")
        >>> with handler.spinner("Loading configuration..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False, console: Optional[Console] = None):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
            console: Console to print to (a new one by default)
        """
        self.verbosity = verbosity
        self.no_color = no_color
        self.console = console or Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: Any) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single operations.

        Args:
            message: Message to display with spinner

        Example:
            >>> with handler.spinner("Fetching tree..."):
            ...     pass
        """
        if not self.console.is_terminal:
            yield
            return
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_page_tree(self, pages: List[PageNode], label: str = "content") -> None:
        """Render page nodes as a tree of titles with their content paths."""
        tree = Tree(f"[bold]{label}[/bold]")

        def add(branch: Tree, page: PageNode) -> None:
            suffix = f" [dim]({page.content_path})[/dim]" if page.content_path else ""
            marker = "📁 " if page.children or page.is_index else ""
            child = branch.add(f"{marker}{page.title}{suffix}")
            for sub_page in page.children:
                add(child, sub_page)

        for page in pages:
            add(tree, page)
        if not pages:
            tree.add("[dim](empty)[/dim]")
        self.console.print(tree)

    def print_file_tree(self, nodes: List[TreeNode], label: str) -> None:
        """Render raw tree nodes (used for asset listings)."""
        tree = Tree(f"[bold]{label}[/bold]")

        def add(branch: Tree, node: TreeNode) -> None:
            if node.is_directory:
                child = branch.add(f"{node.name}/")
                for sub_node in node.children:
                    add(child, sub_node)
            else:
                size = f" [dim]{node.size} B[/dim]" if node.size is not None else ""
                branch.add(f"{node.name}{size}")

        for node in nodes:
            add(tree, node)
        if not nodes:
            tree.add("[dim](empty)[/dim]")
        self.console.print(tree)

    def print_config(
        self,
        form_data: Mapping[str, Mapping[str, Any]],
        sections: Optional[List[SchemaCategory]] = None,
    ) -> None:
        """One table per category: schema sections first, then the rest."""
        titles = {section.key: section.title for section in sections or []}
        ordered = [section.key for section in sections or [] if section.key in form_data]
        ordered.extend(key for key in form_data if key not in ordered)

        for category in ordered:
            values = form_data[category]
            if not values:
                continue
            table = Table(title=titles.get(category, category), title_justify="left")
            table.add_column("Key", style="cyan", no_wrap=True)
            table.add_column("Value")
            for key, value in values.items():
                table.add_row(escape(key), escape(repr(value)))
            self.console.print(table)

    def print_page(self, path: str, metadata: Mapping[str, Any], body: str, show_body: bool = False) -> None:
        """Page settings table, optionally followed by the markdown body."""
        table = Table(title=path, title_justify="left")
        table.add_column("Setting", style="cyan", no_wrap=True)
        table.add_column("Value")
        for key, value in metadata.items():
            table.add_row(escape(str(key)), escape(repr(value)))
        if not metadata:
            table.add_row("[dim](no frontmatter)[/dim]", "")
        self.console.print(table)
        if show_body:
            self.console.print(escape(body), end="" if body.endswith("\n") else "\n")

    def print_operation(self, result: OperationResult) -> None:
        """Summarise a structural page operation."""
        for path in result.paths:
            self.console.print(f"  [green]+[/green] {path}")
        for path in result.removed_paths:
            self.console.print(f"  [red]-[/red] {path}")
        for commit in result.commits:
            self.debug(f"  commit {commit.sha[:8]} {commit.message}")

    def print_save_summary(self, result: ConfigSaveResult) -> None:
        """Display per-file configuration save outcomes."""
        self.console.print("\n[bold]Save Summary:[/bold]")
        for outcome in result.outcomes:
            if not outcome.success:
                self.console.print(f"  [red]✗[/red] {outcome.path}: {outcome.error}")
            elif outcome.used_fallback:
                self.console.print(
                    f"  [yellow]⚠[/yellow] {outcome.path} (written as generic dump: {outcome.error})"
                )
            elif outcome.changed:
                self.console.print(f"  [green]✓[/green] {outcome.path}")
            else:
                self.console.print(f"  [dim]─[/dim] {outcome.path} (unchanged)")

        if not result.success:
            self.console.print("\n[red]Save failed; no files were changed[/red]")
        elif result.commit is None:
            self.console.print("\n[green]Nothing to save. Configuration unchanged.[/green]")
        else:
            self.console.print(f"\n[green]Saved in commit {result.commit.sha[:8]}[/green]")
