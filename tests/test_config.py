from pathlib import Path

import pytest

from sftpdeploy.constants import DEFAULT_TIMEOUT
from sftpdeploy.exceptions import ConfigValidationError
from sftpdeploy.models import DeployConfig, normalize_key
from tests.conftest import TEST_KEY


def inputs(**overrides):
    values = {"host": "test-host", "username": "test-user", "private_key": "test-key"}
    values.update(overrides)
    return values


class TestNormalizeKey:
    def test_appends_newline_when_missing(self):
        assert normalize_key("test-key") == "test-key\n"

    def test_keeps_existing_newline(self):
        assert normalize_key("test-key\n") == "test-key\n"

    def test_keeps_existing_crlf(self):
        assert normalize_key("test-key\r\n") == "test-key\r\n"

    def test_is_idempotent(self):
        for raw in [TEST_KEY, TEST_KEY + "\n", "a\n\n"]:
            once = normalize_key(raw)
            assert normalize_key(once) == once

    def test_config_exposes_normalized_key(self):
        config = DeployConfig.from_inputs(inputs())
        assert config.private_key == "test-key"
        assert config.normalized_key == "test-key\n"


class TestFromInputs:
    def test_defaults(self):
        config = DeployConfig.from_inputs(inputs())

        assert config.port == 22
        assert config.source_dir == Path("./dist")
        assert config.remote_dir == "/var/www/html"
        assert config.key_strategy == "file"
        assert config.recursive is False
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.target == "test-user@test-host"

    @pytest.mark.parametrize("missing", ["host", "username", "private_key"])
    def test_missing_required_input(self, missing):
        with pytest.raises(ConfigValidationError, match=missing):
            DeployConfig.from_inputs(inputs(**{missing: None}))

    def test_blank_required_input(self):
        with pytest.raises(ConfigValidationError, match="host"):
            DeployConfig.from_inputs(inputs(host="   "))

    def test_blank_optional_inputs_use_defaults(self):
        config = DeployConfig.from_inputs(inputs(port="", source_dir="", remote_dir=" "))

        assert config.port == 22
        assert config.source_dir == Path("./dist")
        assert config.remote_dir == "/var/www/html"

    def test_port_string_is_converted(self):
        assert DeployConfig.from_inputs(inputs(port="2222")).port == 2222

    @pytest.mark.parametrize("port", ["ssh", "0", "70000"])
    def test_invalid_port(self, port):
        with pytest.raises(ConfigValidationError, match="port"):
            DeployConfig.from_inputs(inputs(port=port))

    def test_unknown_key_strategy(self):
        with pytest.raises(ConfigValidationError, match="key strategy"):
            DeployConfig.from_inputs(inputs(key_strategy="pageant"))

    def test_zero_timeout_disables_timeout(self):
        assert DeployConfig.from_inputs(inputs(timeout="0")).timeout is None

    @pytest.mark.parametrize("raw,expected", [("true", True), ("false", False), (True, True)])
    def test_recursive_flag(self, raw, expected):
        assert DeployConfig.from_inputs(inputs(recursive=raw)).recursive is expected

    @pytest.mark.parametrize(
        "field, value",
        [("remote_dir", "/r\nrm important.db"), ("remote_dir", "/r\r"), ("source_dir", "dist\nx")],
    )
    def test_line_breaks_in_paths_rejected(self, field, value):
        with pytest.raises(ConfigValidationError, match=f"Invalid {field}"):
            DeployConfig.from_inputs(inputs(**{field: value}))

    def test_errors_never_contain_the_key(self):
        with pytest.raises(ConfigValidationError) as excinfo:
            DeployConfig.from_inputs(inputs(private_key=TEST_KEY, port="bad"))
        assert "OPENSSH" not in str(excinfo.value)


class TestDeployConfig:
    def test_repr_hides_private_key(self):
        config = DeployConfig.from_inputs(inputs(private_key=TEST_KEY))
        assert "OPENSSH" not in repr(config)

    def test_is_immutable(self):
        config = DeployConfig.from_inputs(inputs())
        with pytest.raises(AttributeError):
            config.host = "other"

    def test_direct_construction_is_validated(self):
        with pytest.raises(ConfigValidationError):
            DeployConfig(host="h", username="", private_key="k")

    def test_temp_dir_prefers_explicit_then_runner_temp(self, tmp_path):
        config = DeployConfig.from_inputs(inputs())
        assert config.resolve_temp_dir({"RUNNER_TEMP": "/runner/tmp"}) == Path("/runner/tmp")

        explicit = DeployConfig.from_inputs(inputs(temp_dir=str(tmp_path)))
        assert explicit.resolve_temp_dir({"RUNNER_TEMP": "/runner/tmp"}) == tmp_path
