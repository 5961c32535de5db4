import click
import logging
import shutil
import tempfile
import traceback
from pathlib import Path

from .config import Config
from .builder import build, validate
from .datacls import BuildSpec, ValidationSpec
from .utils import setup_logger, parse_module_levels, parse_envs
from .exceptions import (
    STIBuilderError,
    ConfigurationError,
    EngineOperationError,
    SourceRetrievalError,
)
from . import constants, __version__


def setup_logging(debug: bool, log_levels: str = None, log_file: str = None):
    """Setup logger with debug and module-level configuration"""
    module_levels = parse_module_levels(log_levels) if log_levels else None
    setup_logger(debug=debug, module_levels=module_levels, log_file=log_file)


def handle_errors(func):
    """Decorator to handle common exceptions"""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            logging.error(f"Configuration error: {e}")
            _abort()
        except EngineOperationError as e:
            logging.error(f"{e.kind.name.replace('_', ' ').capitalize()}: {e}")
            _abort()
        except SourceRetrievalError as e:
            logging.error(f"Source error: {e}")
            _abort()
        except STIBuilderError as e:
            logging.error(f"An unexpected application error occurred: {e}")
            _abort()
        except Exception as e:
            logging.error(f"An unexpected error occurred: {e}")
            _abort()
    return wrapper


def _abort():
    ctx = click.get_current_context()
    if ctx.obj.get('debug'):
        traceback.print_exc()
    raise click.Abort()


def _request_options(ctx) -> dict:
    """Engine settings shared by all commands: CLI flags override the settings file."""
    settings: Config = ctx.obj['settings']
    return {
        'docker_url': ctx.obj.get('url') or settings.docker_url,
        'timeout': ctx.obj.get('timeout') or settings.timeout,
        'debug': ctx.obj['debug'],
    }


def _parse_env_option(ctx, param, value):
    try:
        return parse_envs(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


@handle_errors
def do_build(ctx, source: str, base_image: str, tag: str, clean: bool, workdir: str,
             runtime_image: str, environment: list, validate_images: bool):
    """Execute build command"""
    settings: Config = ctx.obj['settings']
    workdir = workdir or settings.working_dir
    temporary = workdir is None
    if temporary:
        workdir = tempfile.mkdtemp(prefix=constants.WORKDIR_TEMP_PREFIX)
        logging.debug(f"Using temporary working directory: {workdir}")

    try:
        spec = BuildSpec(
            **_request_options(ctx),
            working_dir=Path(workdir),
            base_image=base_image,
            runtime_image=runtime_image,
            source=source,
            tag=tag,
            clean=clean,
            validate_images=validate_images,
            environment=environment,
            output=click.get_text_stream('stdout'),
        )
        result = build(spec)
        logging.info(f"Build of '{tag}' finished, success: {result.success}")
    finally:
        if temporary:
            shutil.rmtree(workdir, ignore_errors=True)


@handle_errors
def do_validate(ctx, base_image: str, runtime_image: str, incremental: bool):
    """Execute validate command"""
    spec = ValidationSpec(
        **_request_options(ctx),
        base_image=base_image,
        runtime_image=runtime_image,
        incremental=incremental,
    )
    result = validate(spec)
    for message in result.messages:
        click.echo(message)


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('-l', '--log-levels', help="Comma-separated per-module log levels (e.g., 'bld=DEBUG,eng=INFO')")
@click.option('-f', '--log-file', help='Path to log file')
@click.option('-c', '--config', 'config_file', type=click.Path(dir_okay=False), help='YAML settings file with CLI defaults')
@click.option('-U', '--url', help=f'Set the url of the docker socket to use (default: {constants.DEFAULT_DOCKER_URL})')
@click.option('--timeout', type=click.IntRange(min=1), help=f'Set the timeout for docker operations (default: {constants.DEFAULT_TIMEOUT})')
@click.version_option(version=__version__, prog_name='stibuilder')
@click.pass_context
def cli(ctx, debug, log_levels, log_file, config_file, url, timeout):
    """STI is a tool for building repeatable docker images"""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    setup_logging(debug, log_levels, log_file)
    try:
        settings = Config(config_file)
    except ConfigurationError as e:
        logging.error(f"Configuration error: {e}")
        raise click.Abort()
    if settings.debug and not debug:
        ctx.obj['debug'] = True
        setup_logging(True, log_levels, log_file)
    ctx.obj['settings'] = settings
    ctx.obj['url'] = url
    ctx.obj['timeout'] = timeout


@cli.command('build')
@click.argument('source')
@click.argument('base_image')
@click.argument('tag')
@click.option('--clean', is_flag=True, help='Perform a clean build')
@click.option('--dir', 'workdir', help='Directory where generated Dockerfiles and other support scripts are created (default: a temporary directory)')
@click.option('-R', '--runtime-image', help='Set the runtime image to use')
@click.option('-e', '--env', 'environment', callback=_parse_env_option, help='Specify an environment var NAME=VALUE,NAME2=VALUE2,...')
@click.option('--validate', 'validate_images', is_flag=True, help='Validate the images before building')
@click.pass_context
def build_command(ctx, source, base_image, tag, clean, workdir, runtime_image, environment, validate_images):
    """Build an image from SOURCE on top of BASE_IMAGE and tag it TAG"""
    do_build(ctx, source, base_image, tag, clean, workdir, runtime_image, environment, validate_images)


@cli.command('validate')
@click.argument('base_image')
@click.option('-R', '--runtime-image', help='Set the runtime image to use')
@click.option('-I', '--incremental', is_flag=True, help='Validate for an incremental build')
@click.pass_context
def validate_command(ctx, base_image, runtime_image, incremental):
    """Validate an image and optional runtime image"""
    do_validate(ctx, base_image, runtime_image, incremental)


if __name__ == '__main__':
    cli()
