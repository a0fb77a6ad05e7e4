# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .errors import StepValidationError

# Server-side type tag of the command line runner.
STEP_TYPE_COMMAND_LINE = "simpleRunner"


class ContainerPlatform(str, Enum):
    """Platform a step container runs on. Values are the wire strings."""
    ANY = "*"
    LINUX = "linux"
    WINDOWS = "windows"


class StepExecuteMode(str, Enum):
    """When a step runs relative to the outcome of the previous steps."""
    DEFAULT = "default"
    ONLY_IF_BUILD_IS_SUCCESSFUL = "execute_if_success"
    EVEN_WHEN_FAILED = "execute_if_failed"
    ALWAYS = "execute_always"


@dataclass
class ContainerDefinition:
    """The container a command line step runs within."""
    # registry/image[:tag][@digest]; empty means the step runs on the agent
    image_reference: str = ""
    image_platform: ContainerPlatform = ContainerPlatform.ANY
    # pull the image on every run
    explicitly_pull_image: bool = False
    # appended to the container run (i.e. `docker run`) command
    additional_run_arguments: str = ""

    @property
    def enabled(self) -> bool:
        return self.image_reference != ""


@dataclass(frozen=True)
class ScriptContent:
    """Inline platform-specific script (.cmd on Windows, shell elsewhere)."""
    text: str


@dataclass(frozen=True)
class ExecutableContent:
    """External program plus its argument string."""
    path: str
    args: str = ""


StepContent = Union[ScriptContent, ExecutableContent]


@dataclass
class StepCommandLine:
    """
    A build step of type "CommandLine".

    The step runs either an inline script or an external executable; which
    one is held by `content`. `execute_mode` and `container` can be set
    independently of the content.
    """
    name: str
    content: StepContent
    id: str = ""  # assigned by the server once persisted
    execute_mode: StepExecuteMode = StepExecuteMode.DEFAULT
    container: ContainerDefinition = field(default_factory=ContainerDefinition)

    @classmethod
    def from_script(cls, name: str, script: str) -> StepCommandLine:
        """Create a step that runs an inline platform-specific script."""
        if script == "":
            raise StepValidationError(
                kind="validation",
                step=name or None,
                message="script is required",
            )
        return cls(name=name, content=ScriptContent(script))

    @classmethod
    def from_executable(cls, name: str, executable: str, args: str = "") -> StepCommandLine:
        """Create a step that invokes an external executable."""
        if executable == "":
            raise StepValidationError(
                kind="validation",
                step=name or None,
                message="executable is required",
            )
        return cls(name=name, content=ExecutableContent(executable, args))

    @property
    def step_type(self) -> str:
        return STEP_TYPE_COMMAND_LINE

    @property
    def is_executable(self) -> bool:
        return isinstance(self.content, ExecutableContent)

    # ---- Flat views over `content` ----
    @property
    def custom_script(self) -> str:
        if isinstance(self.content, ScriptContent):
            return self.content.text
        return ""

    @property
    def command_executable(self) -> str:
        if isinstance(self.content, ExecutableContent):
            return self.content.path
        return ""

    @property
    def command_parameters(self) -> str:
        if isinstance(self.content, ExecutableContent):
            return self.content.args
        return ""

    # ---- JSON ----
    def to_json(self) -> bytes:
        # Import here to avoid circular import
        from .codec import step_to_json

        return step_to_json(self)

    @classmethod
    def from_json(cls, data: Union[str, bytes], *, restore_container: bool | None = None) -> StepCommandLine:
        # Import here to avoid circular import
        from .codec import step_from_json

        return step_from_json(data, restore_container=restore_container)
