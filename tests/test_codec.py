import json

import pytest
from pydantic import ValidationError

from tcclient import settings
from tcclient.codec import (
    CONTAINER_KEYS,
    step_from_dict,
    step_from_json,
    step_properties,
    step_to_dict,
    step_to_json,
)
from tcclient.errors import StepDecodeError, StepTypeMismatchError
from tcclient.model import (
    ContainerDefinition,
    ContainerPlatform,
    StepCommandLine,
    StepExecuteMode,
)


def envelope(properties: dict, type_: str = "simpleRunner", **extra) -> dict:
    data = {
        "type": type_,
        "properties": {
            "count": len(properties),
            "property": [{"name": k, "value": v} for k, v in properties.items()],
        },
    }
    data.update(extra)
    return data


class TestEncode:

    def test_script_step_properties(self):
        step = StepCommandLine.from_script("build", "make all")

        props = step_properties(step)

        assert list(props.items()) == [
            ("teamcity.step.mode", "default"),
            ("script.content", "make all"),
            ("use.custom.script", "true"),
        ]

    def test_executable_step_properties(self):
        step = StepCommandLine.from_executable("test", "pytest", "-q")
        step.execute_mode = StepExecuteMode.ALWAYS

        props = step_properties(step)

        assert list(props.items()) == [
            ("teamcity.step.mode", "execute_always"),
            ("command.executable", "pytest"),
            ("command.parameters", "-q"),
        ]

    def test_empty_parameters_are_omitted(self):
        props = step_properties(StepCommandLine.from_executable("test", "pytest"))

        assert "command.parameters" not in props

    def test_empty_image_suppresses_container_block(self):
        step = StepCommandLine.from_script("build", "make")
        step.container = ContainerDefinition(
            image_reference="",
            image_platform=ContainerPlatform.WINDOWS,
            explicitly_pull_image=True,
            additional_run_arguments="--rm",
        )

        props = step_properties(step)

        assert not any(key in props for key in CONTAINER_KEYS)

    def test_any_platform_is_omitted(self):
        step = StepCommandLine.from_script("build", "make")
        step.container = ContainerDefinition(image_reference="img:tag")

        props = step_properties(step)

        assert props.get_with_presence("plugin.docker.imageId") == ("img:tag", True)
        assert props.get_with_presence("plugin.docker.pull.enabled") == ("false", True)
        assert "plugin.docker.imagePlatform" not in props
        assert "plugin.docker.run.parameters" not in props

    def test_full_container_block(self):
        step = StepCommandLine.from_script("build", "make")
        step.container = ContainerDefinition(
            image_reference="mcr.microsoft.com/windows/servercore:ltsc2022",
            image_platform=ContainerPlatform.WINDOWS,
            explicitly_pull_image=True,
            additional_run_arguments="--memory 4g",
        )

        props = step_properties(step)

        assert list(props.items())[3:] == [
            ("plugin.docker.imageId", "mcr.microsoft.com/windows/servercore:ltsc2022"),
            ("plugin.docker.imagePlatform", "windows"),
            ("plugin.docker.pull.enabled", "true"),
            ("plugin.docker.run.parameters", "--memory 4g"),
        ]

    @pytest.mark.parametrize("platform, expected", [("linux", "linux"), ("*", None)])
    def test_plain_string_platform(self, platform, expected):
        step = StepCommandLine.from_script("build", "make")
        step.container = ContainerDefinition(image_reference="alpine", image_platform=platform)

        props = step_properties(step)

        value, found = props.get_with_presence("plugin.docker.imagePlatform")
        assert (value if found else None) == expected

    def test_envelope_for_new_step_omits_id(self):
        step = StepCommandLine.from_script("build", "make")

        data = step_to_dict(step)

        assert "id" not in data
        assert data["name"] == "build"
        assert data["type"] == "simpleRunner"
        assert data["properties"]["count"] == 3

    def test_envelope_keeps_id(self):
        step = StepCommandLine.from_script("build", "make")
        step.id = "RUNNER_12"

        assert json.loads(step_to_json(step))["id"] == "RUNNER_12"


class TestDecode:

    def test_script_round_trip(self):
        step = StepCommandLine.from_script("build", "make all")
        step.execute_mode = StepExecuteMode.EVEN_WHEN_FAILED

        decoded = StepCommandLine.from_json(step.to_json())

        assert decoded.custom_script == "make all"
        assert decoded.execute_mode == StepExecuteMode.EVEN_WHEN_FAILED
        assert decoded.is_executable is False
        assert decoded.name == "build"

    def test_executable_round_trip(self):
        step = StepCommandLine.from_executable("test", "pytest", "-q")
        step.id = "RUNNER_3"

        decoded = step_from_json(step_to_json(step))

        assert decoded == step

    def test_container_round_trip_restores_only_image_reference(self):
        step = StepCommandLine.from_script("build", "make")
        step.container = ContainerDefinition(
            image_reference="alpine:3.19",
            image_platform=ContainerPlatform.LINUX,
            explicitly_pull_image=True,
            additional_run_arguments="--network host",
        )

        decoded = step_from_json(step_to_json(step), restore_container=False)

        assert decoded.container.image_reference == "alpine:3.19"
        assert decoded.container.image_platform == ContainerPlatform.ANY
        assert decoded.container.explicitly_pull_image is False
        assert decoded.container.additional_run_arguments == ""

    def test_container_round_trip_with_restore(self):
        step = StepCommandLine.from_script("build", "make")
        step.container = ContainerDefinition(
            image_reference="alpine:3.19",
            image_platform=ContainerPlatform.LINUX,
            explicitly_pull_image=True,
            additional_run_arguments="--network host",
        )

        decoded = step_from_json(step_to_json(step), restore_container=True)

        assert decoded.container == step.container

    def test_restore_defaults_to_setting(self, monkeypatch):
        monkeypatch.setattr(settings, "RESTORE_CONTAINER", True)
        data = envelope({
            "use.custom.script": "true",
            "plugin.docker.imageId": "alpine",
            "plugin.docker.pull.enabled": "TRUE",
        })

        decoded = step_from_dict(data)

        assert decoded.container.explicitly_pull_image is True

    def test_script_marker_without_content_decodes_empty(self):
        decoded = step_from_dict(envelope({"use.custom.script": "true"}))

        assert decoded.is_executable is False
        assert decoded.custom_script == ""

    def test_missing_mode_is_default(self):
        decoded = step_from_dict(envelope({"command.executable": "make"}))

        assert decoded.execute_mode == StepExecuteMode.DEFAULT
        assert decoded.command_parameters == ""

    def test_both_discriminators_are_rejected(self):
        data = envelope({
            "script.content": "echo hi",
            "use.custom.script": "true",
            "command.executable": "make",
        })

        with pytest.raises(StepDecodeError) as exc_info:
            step_from_dict(data)

        assert exc_info.value.kind == "ambiguous_content"

    def test_no_discriminator_is_rejected(self):
        with pytest.raises(StepDecodeError) as exc_info:
            step_from_dict(envelope({"teamcity.step.mode": "default"}))

        assert exc_info.value.kind == "missing_content"

    def test_missing_properties_is_rejected(self):
        with pytest.raises(StepDecodeError):
            step_from_dict({"type": "simpleRunner", "name": "x"})

    def test_unknown_mode_is_rejected(self):
        data = envelope({"command.executable": "make", "teamcity.step.mode": "sometimes"})

        with pytest.raises(StepDecodeError) as exc_info:
            step_from_dict(data)

        assert exc_info.value.kind == "invalid_value"
        assert exc_info.value.details == {"key": "teamcity.step.mode"}

    def test_unknown_platform_is_rejected_on_restore(self):
        data = envelope({
            "command.executable": "make",
            "plugin.docker.imageId": "alpine",
            "plugin.docker.imagePlatform": "solaris",
        })

        with pytest.raises(StepDecodeError):
            step_from_dict(data, restore_container=True)

    @pytest.mark.parametrize("type_", ["", "powershell", "SimpleRunner"])
    def test_type_mismatch(self, type_):
        with pytest.raises(StepTypeMismatchError) as exc_info:
            step_from_dict(envelope({"use.custom.script": "true"}, type_=type_))

        assert exc_info.value.kind == "type_mismatch"
        assert exc_info.value.details == {"expected": "simpleRunner", "actual": type_}
        assert isinstance(exc_info.value, TypeError)

    def test_malformed_json_raises_validation_error(self):
        with pytest.raises(ValidationError):
            step_from_json(b'{"type": "simpleRunner", ')

    def test_wrong_field_type_raises_validation_error(self):
        with pytest.raises(ValidationError):
            step_from_dict({"type": "simpleRunner", "properties": {"property": "nope"}})
