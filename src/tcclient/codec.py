# codec.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Union

from . import settings
from .errors import StepDecodeError, StepTypeMismatchError
from .model import (
    STEP_TYPE_COMMAND_LINE,
    ContainerDefinition,
    ContainerPlatform,
    ExecutableContent,
    ScriptContent,
    StepCommandLine,
    StepContent,
    StepExecuteMode,
)
from .properties import Properties
from .schemas import StepEnvelope

logger = logging.getLogger(__name__)

# Property keys understood by the command line runner
KEY_EXECUTE_MODE = "teamcity.step.mode"
KEY_EXECUTABLE = "command.executable"
KEY_PARAMETERS = "command.parameters"
KEY_SCRIPT_CONTENT = "script.content"
KEY_USE_CUSTOM_SCRIPT = "use.custom.script"
KEY_IMAGE_ID = "plugin.docker.imageId"
KEY_IMAGE_PLATFORM = "plugin.docker.imagePlatform"
KEY_PULL_ENABLED = "plugin.docker.pull.enabled"
KEY_RUN_PARAMETERS = "plugin.docker.run.parameters"

CONTAINER_KEYS = (KEY_IMAGE_ID, KEY_IMAGE_PLATFORM, KEY_PULL_ENABLED, KEY_RUN_PARAMETERS)


# ---------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------

def _container_properties(container: ContainerDefinition, props: Properties) -> None:
    # Without an image reference none of the container settings apply.
    if not container.enabled:
        return

    props.set(KEY_IMAGE_ID, container.image_reference)

    # Only set the platform when one was explicitly selected
    platform = ContainerPlatform(container.image_platform)
    if platform != ContainerPlatform.ANY:
        props.set(KEY_IMAGE_PLATFORM, platform.value)

    props.set(KEY_PULL_ENABLED, "true" if container.explicitly_pull_image else "false")

    if container.additional_run_arguments:
        props.set(KEY_RUN_PARAMETERS, container.additional_run_arguments)


def step_properties(step: StepCommandLine) -> Properties:
    """
    Derive the property bag for a command line step.

    Keys are emitted in a fixed order: execute mode, content, container.
    """
    props = Properties.empty()
    props.set(KEY_EXECUTE_MODE, StepExecuteMode(step.execute_mode).value)

    content = step.content
    if isinstance(content, ExecutableContent):
        props.set(KEY_EXECUTABLE, content.path)
        if content.args:
            props.set(KEY_PARAMETERS, content.args)
    else:
        props.set(KEY_SCRIPT_CONTENT, content.text)
        props.set(KEY_USE_CUSTOM_SCRIPT, "true")

    _container_properties(step.container, props)
    return props


def step_to_dict(step: StepCommandLine) -> Dict[str, Any]:
    """
    Convert a step to the JSON envelope the server expects.

    Empty `id` and `name` are left out, matching the server's own encoder.
    """
    envelope: Dict[str, Any] = {}
    if step.id:
        envelope["id"] = step.id
    if step.name:
        envelope["name"] = step.name
    envelope["type"] = step.step_type
    envelope["properties"] = step_properties(step).to_wire()
    return envelope


def step_to_json(step: StepCommandLine) -> bytes:
    return json.dumps(step_to_dict(step)).encode("utf-8")


# ---------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------

def _decode_content(props: Properties, step_name: str) -> StepContent:
    """
    Pick the step content from the single discriminator key present.

    `use.custom.script` selects a script, `command.executable` an executable.
    Having both or neither is rejected instead of guessed.
    """
    _, is_script = props.get_with_presence(KEY_USE_CUSTOM_SCRIPT)
    executable, is_executable = props.get_with_presence(KEY_EXECUTABLE)

    if is_script and is_executable:
        raise StepDecodeError(
            kind="ambiguous_content",
            step=step_name or None,
            message="step defines both a custom script and an executable",
            details={"keys": f"{KEY_USE_CUSTOM_SCRIPT},{KEY_EXECUTABLE}"},
        )

    if is_script:
        # A script marker without text still decodes, as an empty script.
        text, _ = props.get_with_presence(KEY_SCRIPT_CONTENT)
        return ScriptContent(text)

    if is_executable:
        args, _ = props.get_with_presence(KEY_PARAMETERS)
        return ExecutableContent(executable, args)

    raise StepDecodeError(
        kind="missing_content",
        step=step_name or None,
        message="step defines neither a custom script nor an executable",
        details={"keys": f"{KEY_USE_CUSTOM_SCRIPT},{KEY_EXECUTABLE}"},
    )


def _decode_enum(enum_cls, key: str, value: str, step_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise StepDecodeError(
            kind="invalid_value",
            step=step_name or None,
            message=f"unknown {enum_cls.__name__} value {value!r}",
            details={"key": key},
        )


def _decode_container(props: Properties, step_name: str, restore_container: bool) -> ContainerDefinition:
    container = ContainerDefinition()

    image, found = props.get_with_presence(KEY_IMAGE_ID)
    if not found:
        return container
    container.image_reference = image

    # Only the image reference is read back unless full restore was asked for.
    if not restore_container:
        return container

    platform, found = props.get_with_presence(KEY_IMAGE_PLATFORM)
    if found:
        container.image_platform = _decode_enum(ContainerPlatform, KEY_IMAGE_PLATFORM, platform, step_name)

    pull, found = props.get_with_presence(KEY_PULL_ENABLED)
    if found:
        container.explicitly_pull_image = pull.strip().lower() == "true"

    run_args, found = props.get_with_presence(KEY_RUN_PARAMETERS)
    if found:
        container.additional_run_arguments = run_args

    return container


def _envelope_to_step(envelope: StepEnvelope, restore_container: bool | None) -> StepCommandLine:
    if envelope.type != STEP_TYPE_COMMAND_LINE:
        raise StepTypeMismatchError(
            kind="type_mismatch",
            step=envelope.name or None,
            message=f"invalid type {envelope.type} trying to deserialize into StepCommandLine entity",
            details={"expected": STEP_TYPE_COMMAND_LINE, "actual": envelope.type},
        )

    if restore_container is None:
        restore_container = settings.RESTORE_CONTAINER

    props = Properties.from_wire(
        envelope.properties.model_dump() if envelope.properties is not None else None
    )

    content = _decode_content(props, envelope.name)

    mode = StepExecuteMode.DEFAULT
    raw_mode, found = props.get_with_presence(KEY_EXECUTE_MODE)
    if found:
        mode = _decode_enum(StepExecuteMode, KEY_EXECUTE_MODE, raw_mode, envelope.name)

    container = _decode_container(props, envelope.name, restore_container)

    logger.debug(
        "decoded step %r: mode=%s executable=%s container=%s",
        envelope.name,
        mode.value,
        isinstance(content, ExecutableContent),
        container.image_reference or "-",
    )

    return StepCommandLine(
        name=envelope.name,
        content=content,
        id=envelope.id,
        execute_mode=mode,
        container=container,
    )


def step_from_dict(data: Mapping[str, Any], *, restore_container: bool | None = None) -> StepCommandLine:
    """
    Convert a JSON envelope (already parsed) into a new step.

    Args:
        data: Envelope dictionary with id, name, type and properties
        restore_container: Also read back platform, pull flag and run
            arguments. Defaults to settings.RESTORE_CONTAINER.

    Raises:
        pydantic.ValidationError: If the envelope is structurally invalid
        StepTypeMismatchError: If the envelope is not a command line step
        StepDecodeError: If the properties cannot be mapped onto a step
    """
    envelope = StepEnvelope.model_validate(data)
    return _envelope_to_step(envelope, restore_container)


def step_from_json(data: Union[str, bytes], *, restore_container: bool | None = None) -> StepCommandLine:
    """Same as step_from_dict(), starting from raw JSON text or bytes."""
    envelope = StepEnvelope.model_validate_json(data)
    return _envelope_to_step(envelope, restore_container)
