"""
Output renderer for the CLI.

Provides consistent formatting for optimization results, clarification
questions and errors.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from prompt_optimizer import OptimizationSuccess

# Global console instance
console = Console()


class OutputRenderer:
    """
    Renders output with consistent formatting using Rich.

    Provides methods for different types of output (errors, warnings, results and streamed answers)
    """

    def __init__(self, console_instance: Console | None = None) -> None:
        """
        Initialize the renderer.

        Args:
            console_instance: Optional Rich Console instance to use
        """
        self.console = console_instance or console

    def error(self, message: str, title: str | None = None) -> None:
        """
        Render an error message in red.

        Args:
            message: The error message
            title: Optional title for the error
        """
        if title:
            self.console.print(f"[bold red]{title}:[/bold red] {message}")
        else:
            self.console.print(f"[bold red]Error:[/bold red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{message}[/yellow]")

    def clarification(self, question: str) -> None:
        """Render the optimizer's clarification question."""
        self.console.print(
            Panel(question, title="Clarification needed", border_style="yellow")
        )

    def optimization(self, result: OptimizationSuccess) -> None:
        """
        Render an optimized prompt with its token accounting.

        Args:
            result: Successful optimization result
        """
        self.console.print(
            Panel(result.optimized_prompt, title="Optimized prompt", border_style="green")
        )

        counts = result.token_counts
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Original tokens", justify="right")
        table.add_column("Optimized tokens", justify="right")
        table.add_column("Saved", justify="right")
        table.add_column("Latency", justify="right")

        saved_style = "green" if counts.saved >= 0 else "red"
        table.add_row(
            str(counts.original),
            str(counts.optimized),
            f"[{saved_style}]{counts.saved}[/{saved_style}]",
            f"{result.latency_ms} ms",
        )
        self.console.print(table)

    def response_header(self) -> None:
        self.console.print("\n[bold blue]Response[/bold blue]")

    def stream_chunk(self, chunk: str) -> None:
        """Print a streamed response chunk without a trailing newline."""
        self.console.print(chunk, end="", markup=False, highlight=False)

    def stream_end(self) -> None:
        self.console.print()
