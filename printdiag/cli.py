"""
Command line interface for PrintDiag.
"""
import asyncio
import logging
import os
import sys
from typing import Optional

import typer
from rich.console import Console

from printdiag.config_manager import ConfigManager
from printdiag.rich_utils.ui_helpers import (
    get_console,
    render_artifact,
    render_error,
    render_guidance,
    state_label,
)
from printdiag.submission import (
    ArtifactCandidate,
    ConfigurationError,
    FileValidator,
    SubmissionController,
    Success,
    ValidationError,
)


# Initialize Typer app
app = typer.Typer(help="PrintDiag - AI troubleshooting for 3D print G-code")


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _candidate_or_exit(console: Console, file_path: str) -> ArtifactCandidate:
    if not os.path.isfile(file_path):
        render_error(console, f"File not found: {file_path}", title="Validation Error")
        sys.exit(1)
    return ArtifactCandidate.from_path(file_path)


async def _run_submission(controller: SubmissionController, console: Console):
    with console.status(state_label(controller.state)) as status:
        controller.add_listener(lambda state: status.update(state_label(state)))
        return await controller.submit()


def submit_command(
    file_path: str = typer.Argument(..., help="G-code file to analyze"),
    description: str = typer.Option(..., "-d", "--description", help="Describe the problem (minimum 3 words)"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Troubleshooting API URL (overrides PRINTDIAG_API_URL)"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout in seconds"),
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Path to config YAML"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
):
    """Send a G-code file and a problem description for AI diagnosis."""
    _configure_logging(verbose)
    console = get_console()

    try:
        config = ConfigManager().load_submission_config(config_path, api_url=api_url, timeout=timeout)
    except ConfigurationError as e:
        render_error(console, e.message, title="Configuration Error")
        sys.exit(1)

    controller = SubmissionController(config)
    result = controller.select_artifact(_candidate_or_exit(console, file_path))
    controller.set_description(description)

    try:
        controller.validator.require_valid(result)
        controller.validator.require_valid(controller.validator.validate_description(description))
    except ValidationError as e:
        render_error(console, e.message, title="Validation Error")
        sys.exit(1)

    render_artifact(console, controller.artifact)

    try:
        outcome = asyncio.run(_run_submission(controller, console))
    except KeyboardInterrupt:
        console.print("\n⚠️ Submission interrupted by user", style="yellow")
        sys.exit(130)

    if isinstance(outcome, Success):
        render_guidance(console, outcome.guidance)
    else:
        render_error(console, controller.error_message or "Submission was not sent")
        sys.exit(1)


def check_command(
    file_path: str = typer.Argument(..., help="G-code file to check"),
    description: Optional[str] = typer.Option(None, "-d", "--description", help="Problem description to check"),
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Path to config YAML"),
):
    """Run the pre-flight checks without contacting the service."""
    console = get_console()

    try:
        config = ConfigManager().load_submission_config(config_path)
    except ConfigurationError as e:
        render_error(console, e.message, title="Configuration Error")
        sys.exit(1)

    validator = FileValidator(config)
    results = [("File", validator.validate(_candidate_or_exit(console, file_path)))]
    if description is not None:
        results.append(("Description", validator.validate_description(description)))

    failed = False
    for label, result in results:
        if result.is_valid:
            console.print(f"✅ {label}: OK", style="green")
        else:
            failed = True
            console.print(f"❌ {label}: {result.error_message}", style="red")

    if failed:
        sys.exit(1)


# Register commands
app.command("submit", help="Send a G-code file and a problem description for AI diagnosis.")(submit_command)
app.command("check", help="Run the pre-flight checks without contacting the service.")(check_command)


@app.callback()
def main():
    """PrintDiag - AI troubleshooting for 3D print G-code.

    Run 'printdiag check FILE' to validate a file locally.
    Run 'printdiag submit FILE -d "what went wrong"' to ask for a diagnosis.
    """
