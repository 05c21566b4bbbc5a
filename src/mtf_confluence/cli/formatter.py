"""
Output formatting for different display modes.
"""
import json
from io import StringIO
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

console = Console()


class OutputFormatter:
    """Format cycle results for display."""

    @staticmethod
    def _color_code_signal(signal: str) -> str:
        """Apply color coding to signals based on type."""
        if signal == "BUY":
            return "[green]BUY[/green]"
        elif signal == "SELL":
            return "[red]SELL[/red]"
        elif signal == "HOLD":
            return "[yellow]HOLD[/yellow]"
        elif signal == "BULLISH":
            return "[green]BULLISH[/green]"
        elif signal == "BEARISH":
            return "[red]BEARISH[/red]"
        elif signal == "NEUTRAL":
            return "[yellow]NEUTRAL[/yellow]"
        elif signal == "ERROR":
            return "[red]ERROR[/red]"
        else:
            # Fallback for any unknown label
            return f"[dim]{signal}[/dim]"

    @staticmethod
    def _render(renderable: Any) -> str:
        """Render a rich object to a string for nesting inside a panel."""
        buffer = StringIO()
        temp_console = Console(file=buffer, force_terminal=True)
        temp_console.print(renderable)
        return buffer.getvalue()

    @staticmethod
    def format_table(result: Dict[str, Any]) -> None:
        """
        Format one cycle result as rich panels and tables.

        Args:
            result: Cycle result as produced by ``build_result``
        """
        decision = result["decision"]
        symbol = result.get("symbol") or "-"

        if decision.get("error"):
            console.print(
                Panel(
                    f"[red]Error evaluating {symbol}:[/red]\n{decision['error']}",
                    title="[X] Decision Error",
                    border_style="red",
                )
            )
            return

        signal = decision["final_signal"]
        if signal == "BUY":
            border_style = "green"
        elif signal == "SELL":
            border_style = "red"
        else:
            border_style = "yellow"

        levels = decision["levels"]
        content = f"""[bold]Signal:[/bold] {OutputFormatter._color_code_signal(signal)}    [bold]Probability:[/bold] {decision['probability']:.0f}%    [bold]Confidence:[/bold] {decision['confidence']}

[bold]Action:[/bold] {decision['action']}
[bold]Price:[/bold] {decision['price']}    [bold]Stop:[/bold] {levels['stop_loss']}    [bold]Targets:[/bold] {levels['targets'][0]}, {levels['targets'][1]}
"""

        # Per-period hierarchy table
        if decision.get("hierarchy"):
            period_table = Table(show_header=True, box=None, padding=(0, 1))
            period_table.add_column("Period", style="cyan")
            period_table.add_column("Signal")
            period_table.add_column("Strength", justify="right")
            period_table.add_column("Trend")
            period_table.add_column("Oscillator", justify="right")

            for entry in decision["hierarchy"]:
                period_table.add_row(
                    entry["period"],
                    OutputFormatter._color_code_signal(entry["signal"]),
                    f"{entry['strength']:.0f}",
                    entry["trend"],
                    f"{entry['oscillator']:.1f}",
                )

            content += "\n[bold]Periods:[/bold]\n"
            content += OutputFormatter._render(period_table)

        if decision.get("rationale"):
            content += "\n[bold]Rationale:[/bold]\n" + "\n".join(f"- {line}" for line in decision["rationale"])

        if decision.get("alerts"):
            content += "\n\n[bold]Alerts:[/bold]\n" + "\n".join(f"[yellow]! {alert}[/yellow]" for alert in decision["alerts"])

        console.print(
            Panel(
                content,
                title=f"[*] {symbol} Decision",
                subtitle=f"Updated: {decision['timestamp'][:19]}",
                border_style=border_style,
            )
        )

        regime = result.get("regime")
        if regime:
            OutputFormatter.format_regime(regime)

    @staticmethod
    def format_regime(regime: Dict[str, Any]) -> None:
        """Format a regime summary as a panel."""
        bias = regime["bias"]
        allowed = "[green]yes[/green]" if regime["trade_allowed"] else "[red]no[/red]"
        content = (
            f"[bold]Bias:[/bold] {OutputFormatter._color_code_signal(bias)}    "
            f"[bold]State:[/bold] {regime['state']}    "
            f"[bold]Signal type:[/bold] {regime['signal_type']}\n"
            f"[bold]Trade allowed:[/bold] {allowed}    "
            f"[bold]Confidence:[/bold] {regime['confidence']:.0f}\n"
            f"[bold]Reason:[/bold] {regime['reason']}"
        )
        console.print(Panel(content, title="[*] Market Regime", border_style="cyan"))

    @staticmethod
    def format_json(result: Dict[str, Any]) -> str:
        """
        Format a cycle result as JSON.

        Args:
            result: Cycle result as produced by ``build_result``

        Returns:
            JSON string
        """
        return json.dumps(result, indent=2)

    @staticmethod
    def build_result(symbol: Optional[str], decision: Dict[str, Any],
                     regime: Optional[Dict[str, Any]] = None,
                     corroboration: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Bundle a decision dump, a regime summary and the applied corroboration."""
        return {"symbol": symbol, "decision": decision, "regime": regime, "corroboration": corroboration}

    @staticmethod
    def print_success(message: str) -> None:
        """Print a success message."""
        console.print(f"[OK] {message}", style="green")

    @staticmethod
    def print_error(message: str) -> None:
        """Print an error message."""
        console.print(f"[ERROR] {message}", style="red bold")
