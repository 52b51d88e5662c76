import os
import sys

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from printdiag.submission.models import Artifact, SubmissionState

STATE_LABELS = {
    SubmissionState.VALIDATING: "Checking submission...",
    SubmissionState.COMPRESSING: "Compressing G-code...",
    SubmissionState.SENDING: "Take a deep breath...",
    SubmissionState.AWAITING_RESPONSE: "Reading diagnosis...",
}


def is_ci_environment():
    return (
        os.getenv('CI') is not None or
        os.getenv('GITHUB_ACTIONS') is not None or
        not sys.stdout.isatty()
    )


def get_console() -> Console:
    """Detect environment and create console."""
    if is_ci_environment():
        # CI/automated environment - no colors, no interactive elements
        return Console(force_terminal=False, no_color=True)
    return Console()


def state_label(state: SubmissionState) -> str:
    return STATE_LABELS.get(state, state.value.replace("_", " ").capitalize())


def render_artifact(console: Console, artifact: Artifact):
    """Show the accepted file with its size in MB"""
    text = Text()
    text.append("📄 ", style="green")
    text.append(artifact.name, style="bold")
    text.append(f"  {artifact.size_mb:.2f} MB", style="dim")
    console.print(text)


def render_guidance(console: Console, guidance: str):
    """Render returned guidance as Markdown inside a panel"""
    panel = Panel(
        Markdown(guidance),
        title="Troubleshooting Guidance",
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)


def render_error(console: Console, message: str, title: str = "Submission Error"):
    panel = Panel(
        Text(message, style="red"),
        title=f"❌ {title}",
        border_style="red",
        padding=(0, 1),
    )
    console.print(panel)
