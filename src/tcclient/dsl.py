# src/tcclient/dsl.py
from __future__ import annotations

from typing import Optional, Union

from .errors import StepValidationError
from .model import (
    ContainerDefinition,
    ContainerPlatform,
    StepCommandLine,
    StepExecuteMode,
)

ModeLike = Union[StepExecuteMode, str]
PlatformLike = Union[ContainerPlatform, str]


def _platform(value: PlatformLike) -> ContainerPlatform:
    # allow "any" as a friendlier spelling of "*"
    if isinstance(value, str) and value.lower() == "any":
        return ContainerPlatform.ANY
    return ContainerPlatform(value)


# ---------------------------------------------------------------------
# Functional helpers
# ---------------------------------------------------------------------

def container(
    image: str,
    *,
    platform: PlatformLike = ContainerPlatform.ANY,
    pull: bool = False,
    run_args: str = "",
) -> ContainerDefinition:
    """Create a container definition."""
    return ContainerDefinition(
        image_reference=image,
        image_platform=_platform(platform),
        explicitly_pull_image=pull,
        additional_run_arguments=run_args,
    )


def script(
    name: str,
    text: str,
    *,
    mode: ModeLike = StepExecuteMode.DEFAULT,
    container: Optional[ContainerDefinition] = None,
) -> StepCommandLine:
    """Create a step that runs an inline script."""
    step = StepCommandLine.from_script(name, text)
    step.execute_mode = StepExecuteMode(mode)
    if container is not None:
        step.container = container
    return step


def executable(
    name: str,
    path: str,
    args: str = "",
    *,
    mode: ModeLike = StepExecuteMode.DEFAULT,
    container: Optional[ContainerDefinition] = None,
) -> StepCommandLine:
    """Create a step that runs an external executable."""
    step = StepCommandLine.from_executable(name, path, args)
    step.execute_mode = StepExecuteMode(mode)
    if container is not None:
        step.container = container
    return step


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class StepBuilder:
    def __init__(self, name: str):
        self.name = name
        self._id = ""
        self._script: Optional[str] = None
        self._executable: Optional[tuple[str, str]] = None
        self._mode = StepExecuteMode.DEFAULT
        self._container: Optional[ContainerDefinition] = None

    def with_id(self, step_id: str):
        self._id = step_id
        return self

    def run_script(self, text: str):
        # last content call wins
        self._script = text
        self._executable = None
        return self

    def run_executable(self, path: str, args: str = ""):
        self._executable = (path, args)
        self._script = None
        return self

    def execute_mode(self, mode: ModeLike):
        self._mode = StepExecuteMode(mode)
        return self

    def in_container(
        self,
        image: str,
        *,
        platform: PlatformLike = ContainerPlatform.ANY,
        pull: bool = False,
        run_args: str = "",
    ):
        self._container = container(image, platform=platform, pull=pull, run_args=run_args)
        return self

    def build(self) -> StepCommandLine:
        if self._executable is not None:
            step = executable(self.name, *self._executable, mode=self._mode, container=self._container)
        elif self._script is not None:
            step = script(self.name, self._script, mode=self._mode, container=self._container)
        else:
            raise StepValidationError(
                kind="validation",
                step=self.name or None,
                message="step has no script or executable",
            )
        step.id = self._id
        return step


def build(name: str) -> StepBuilder:
    """Convenience: build('compile').run_script('make').build()"""
    return StepBuilder(name)
