"""Console output formatting utilities for tcstep."""

from __future__ import annotations

import sys
from typing import Optional

from tcclient.model import ContainerPlatform, StepCommandLine, StepExecuteMode
from tcclient.properties import Properties


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_step(self, step: StepCommandLine) -> None:
        """Print the typed fields of a decoded step."""
        self.print_header(f"STEP: {step.name or '(unnamed)'}")
        print(f"ID: {step.id or '(not persisted)'}")
        print(f"Type: {step.step_type}")
        print(f"Execute mode: {StepExecuteMode(step.execute_mode).value}")
        if step.is_executable:
            print("Content: executable")
            print(f"Executable: {step.command_executable}")
            if step.command_parameters:
                print(f"Parameters: {step.command_parameters}")
        else:
            print("Content: script")
            for line in step.custom_script.splitlines() or [""]:
                print(f"  | {line}")

        container = step.container
        if not container.enabled:
            print("Container: none")
            return
        print(f"Container: {container.image_reference}")
        platform = ContainerPlatform(container.image_platform)
        platform = "any" if platform == ContainerPlatform.ANY else platform.value
        print(f"  Platform: {platform}")
        print(f"  Pull image: {'yes' if container.explicitly_pull_image else 'no'}")
        if container.additional_run_arguments:
            print(f"  Run arguments: {container.additional_run_arguments}")

    def print_properties(self, props: Properties) -> None:
        """Print a property bag as key=value lines."""
        for key, value in props.items():
            print(f"{key}={value}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
