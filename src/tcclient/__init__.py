from .codec import step_from_dict, step_from_json, step_properties, step_to_dict, step_to_json
from .dsl import build, container, executable, script, StepBuilder
from .errors import StepDecodeError, StepError, StepTypeMismatchError, StepValidationError
from .model import (
    STEP_TYPE_COMMAND_LINE,
    ContainerDefinition,
    ContainerPlatform,
    ExecutableContent,
    ScriptContent,
    StepCommandLine,
    StepExecuteMode,
)
from .properties import Properties

__all__ = [
    "step_from_dict", "step_from_json", "step_properties", "step_to_dict", "step_to_json",
    "build", "container", "executable", "script", "StepBuilder",
    "StepDecodeError", "StepError", "StepTypeMismatchError", "StepValidationError",
    "STEP_TYPE_COMMAND_LINE", "ContainerDefinition", "ContainerPlatform", "ExecutableContent",
    "ScriptContent", "StepCommandLine", "StepExecuteMode",
    "Properties",
]
