import os

import pytest
from click.testing import CliRunner

from stibuilder import cli as cli_module
from stibuilder import constants
from stibuilder.cli import cli
from stibuilder.datacls import BuildResult, Env, ValidationResult
from stibuilder.exceptions import BuildFailedError, SourceRetrievalError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def captured(monkeypatch):
    """Replace the build/validate entry points and record the specs they receive."""
    calls = {}

    def fake_build(spec):
        calls['build'] = spec
        calls['workdir_existed'] = os.path.isdir(spec.working_dir)
        spec.output.write("Step 1 : FROM base\n")
        return BuildResult(success=True, messages=["Step 1 : FROM base"])

    def fake_validate(spec):
        calls['validate'] = spec
        result = ValidationResult()
        result.record_validation(constants.BASE_IMAGE_SUBJECT, spec.base_image, True)
        if spec.runtime_image:
            result.record_validation(constants.RUNTIME_IMAGE_SUBJECT, spec.runtime_image, False)
        return result

    monkeypatch.setattr(cli_module, 'build', fake_build)
    monkeypatch.setattr(cli_module, 'validate', fake_validate)
    return calls


class TestBuildCommand:

    def test_defaults(self, runner, captured):
        result = runner.invoke(cli, ['build', '/src/app', 'ruby:2.7', 'my-app'])

        assert result.exit_code == 0, result.output
        spec = captured['build']
        assert spec.source == '/src/app'
        assert spec.base_image == 'ruby:2.7'
        assert spec.tag == 'my-app'
        assert spec.clean is False
        assert spec.runtime_image is None
        assert spec.environment == []
        assert spec.docker_url == constants.DEFAULT_DOCKER_URL
        assert spec.timeout == constants.DEFAULT_TIMEOUT
        assert "Step 1 : FROM base" in result.output

    def test_temporary_working_dir_is_removed(self, runner, captured):
        result = runner.invoke(cli, ['build', '/src/app', 'ruby:2.7', 'my-app'])

        assert result.exit_code == 0, result.output
        workdir = captured['build'].working_dir
        assert workdir.name.startswith(constants.WORKDIR_TEMP_PREFIX)
        assert captured['workdir_existed']
        assert not workdir.exists()

    def test_explicit_working_dir_is_kept(self, runner, captured, tmp_path):
        workdir = tmp_path / 'work'
        result = runner.invoke(cli, ['build', '--dir', str(workdir), '/src/app', 'ruby:2.7', 'my-app'])

        assert result.exit_code == 0, result.output
        assert captured['build'].working_dir == workdir

    def test_all_options(self, runner, captured):
        result = runner.invoke(cli, [
            '-U', 'tcp://10.0.0.1:2375', '--timeout', '90',
            'build', '--clean', '--validate', '-R', 'ruby-runtime', '-e', 'A=1,B=x=y',
            'git://example.com/app.git', 'ruby:2.7', 'my-app',
        ])

        assert result.exit_code == 0, result.output
        spec = captured['build']
        assert spec.docker_url == 'tcp://10.0.0.1:2375'
        assert spec.timeout == 90
        assert spec.clean is True
        assert spec.validate_images is True
        assert spec.runtime_image == 'ruby-runtime'
        assert spec.environment == [Env(name='A', value='1'), Env(name='B', value='x=y')]

    def test_invalid_env_is_a_usage_error(self, runner, captured):
        result = runner.invoke(cli, ['build', '-e', 'NOVALUE', '/src/app', 'ruby:2.7', 'my-app'])

        assert result.exit_code == 2
        assert "expected NAME=VALUE" in result.output
        assert 'build' not in captured

    @pytest.mark.parametrize("error", [BuildFailedError("boom"), SourceRetrievalError("no repo")])
    def test_errors_abort(self, runner, monkeypatch, error):
        def failing_build(spec):
            raise error

        monkeypatch.setattr(cli_module, 'build', failing_build)
        result = runner.invoke(cli, ['build', '/src/app', 'ruby:2.7', 'my-app'])

        assert result.exit_code == 1
        assert "Aborted!" in result.output

    def test_settings_file_supplies_defaults(self, runner, captured, tmp_path):
        settings = tmp_path / 'settings.yml'
        settings.write_text(f"docker_url: tcp://build-host:2375\ntimeout: 45\nworking_dir: {tmp_path / 'ws'}\n")

        result = runner.invoke(cli, ['-c', str(settings), '--timeout', '60', 'build', '/src/app', 'ruby:2.7', 'my-app'])

        assert result.exit_code == 0, result.output
        spec = captured['build']
        assert spec.docker_url == 'tcp://build-host:2375'
        assert spec.timeout == 60
        assert spec.working_dir == tmp_path / 'ws'

    def test_broken_settings_file_aborts(self, runner, captured, tmp_path):
        settings = tmp_path / 'settings.yml'
        settings.write_text("timeout: 0\n")

        result = runner.invoke(cli, ['-c', str(settings), 'build', '/src/app', 'ruby:2.7', 'my-app'])

        assert result.exit_code == 1
        assert 'build' not in captured


class TestValidateCommand:

    def test_prints_messages(self, runner, captured):
        result = runner.invoke(cli, ['validate', '-R', 'ruby-runtime', '-I', 'ruby:2.7'])

        assert result.exit_code == 0, result.output
        spec = captured['validate']
        assert spec.incremental is True
        assert spec.runtime_image == 'ruby-runtime'
        assert result.output.splitlines() == [
            "Base image ruby:2.7 passes validation",
            "Runtime image ruby-runtime failed validation",
        ]

    def test_requires_base_image(self, runner, captured):
        result = runner.invoke(cli, ['validate'])
        assert result.exit_code == 2
        assert 'validate' not in captured
