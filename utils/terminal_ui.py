"""Terminal UI utilities using Rich.

All user-facing output of the CLI goes through this module so colors follow
the configured theme.
"""

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from config import Config
from utils.theme import Theme

Theme.set_theme(Config.TUI_THEME if Config.TUI_THEME in ("dark", "light") else "dark")

console = Console()


def _get_colors():
    return Theme.get_colors()


def print_error(message: str, title: str = "Error") -> None:
    """Print an error message.

    Args:
        message: Error message
        title: Error title (default: "Error")
    """
    colors = _get_colors()
    console.print(
        Panel(
            Text(message, style=colors.error),
            title=f"[bold {colors.error}]{title}[/bold {colors.error}]",
            border_style=colors.error,
            box=box.ROUNDED,
        )
    )


def print_warning(message: str) -> None:
    colors = _get_colors()
    console.print(Text(message, style=colors.warning))


def print_markdown(markdown_text: str) -> None:
    """Print formatted markdown.

    Args:
        markdown_text: Markdown text to render
    """
    console.print(Markdown(markdown_text))


def print_transcript(transcript: str, raw: bool = False) -> None:
    """Print the transcript of a finished command.

    Args:
        transcript: Rendered command output
        raw: Print the text verbatim instead of rendering markdown
    """
    if raw:
        console.print(transcript, markup=False, highlight=False, soft_wrap=True)
        return

    colors = _get_colors()
    console.print(
        Panel(
            Markdown(transcript),
            title=f"[bold {colors.success}]Ready[/bold {colors.success}]",
            border_style=colors.success,
            box=box.DOUBLE,
            padding=(1, 2),
        )
    )


def print_log_location(log_file: str) -> None:
    """Print log file location.

    Args:
        log_file: Path to log file
    """
    colors = _get_colors()
    console.print()
    console.print(Text(f"Detailed logs: {log_file}", style=colors.text_muted))
