"""
Command Line Interface for localnet.
"""
import json
import os
import click
from ..CONFIG.settings import LocalnetSettings, CacheBackend
from ..PARSERS.compose_parser import ComposeParser
from ..VALIDATION.topology import TopologyValidator
from ..BUILDERS.cache_config import CacheConfigBuilder
from ..BUILDERS.image_builder import ImageBuilder
from ..MANAGERS.stack_launcher import StackLauncher
from ..MANAGERS.credential_initializer import CredentialInitializer
from ..MANAGERS.devnet_pipeline import DevnetPipeline
from ..MANAGERS.volume_manager import VolumeManager
from ..CONVERTERS.to_compose import ComposeConverter
from ..CONVERTERS.to_action import ActionConverter
from ..RUNNERS.process_runner import ProcessRunner
from ..UTILS import console
from ..errors import BuildError, ConfigurationError


@click.group()
@click.option('--file', '-f', default=None, help='Compose file path, relative to the project dir [default: ci/docker-compose.yml]')
@click.option('--project-dir', default=None, help='Project root the token script and compose file are resolved against')
@click.option('--env-file', default='.env', show_default=True, help='Dotenv file with LOCALNET_* settings, relative to the project dir')
@click.option('--dry-run', is_flag=True, help='Print external commands instead of running them')
@click.option('--quiet', '-q', is_flag=True, help='Only print warnings and errors')
@click.pass_context
def cli(ctx, file, project_dir, env_file, dry_run, quiet):
    """
    localnet - build, start and initialize a local devnet.

    Runs a validator and bridge nodes from a compose file the way the CI
    action does: build images, start the stack, generate auth tokens.
    """
    ctx.ensure_object(dict)
    console.set_quiet(quiet)
    if project_dir and not os.path.isabs(env_file):
        env_file = os.path.join(project_dir, env_file)
    try:
        ctx.obj['settings'] = LocalnetSettings.load(
            env_file=env_file,
            compose_file=file,
            project_dir=project_dir,
            dry_run=dry_run or None,
        )
    except ConfigurationError as e:
        _report(e)
        ctx.exit(1)


def _report(error: ConfigurationError):
    console.error("config", error.message)
    for issue in error.issues:
        click.echo(f"  - {issue}", err=True)


def _load_config(ctx):
    """
    Parses the compose file once per invocation; exits with 1 if it is unusable.
    """
    if 'config' not in ctx.obj:
        settings = ctx.obj['settings']
        try:
            ctx.obj['config'] = ComposeParser().parse(settings.compose_path)
        except ConfigurationError as e:
            _report(e)
            ctx.exit(1)
    return ctx.obj['config']


def _runner(ctx) -> ProcessRunner:
    return ctx.obj.get('runner') or ProcessRunner(dry_run=ctx.obj['settings'].dry_run)


def _finish(ctx, result):
    if not result.success:
        console.error(result.stage.value, result.message)
        ctx.exit(1)


@cli.command()
@click.pass_context
def validate(ctx):
    """Check the devnet topology for inconsistencies."""
    config = _load_config(ctx)
    issues = TopologyValidator().validate(config)
    if issues:
        for issue in issues:
            click.echo(f"- {issue}")
        ctx.exit(1)
    validator = config.validator()
    click.echo(f"OK: validator expects {validator.bridge_count} bridge(s), "
               f"{len(config.bridges())} defined.")
    for info in VolumeManager(ctx.obj['settings'].compose_dir).describe(config):
        kind = "persistent" if info.persistent else "ephemeral"
        click.echo(f"volume {info.name:12} {info.backing:8} {kind:10} used by {', '.join(info.services)}")


@cli.command('cache-config')
@click.option('--backend', type=click.Choice([b.value for b in CacheBackend]), default=None,
              help='Cache backend [default: from settings]')
@click.option('--output', '-o', default=None, help='Write to this file instead of stdout')
@click.pass_context
def cache_config(ctx, backend, output):
    """Print or write the bake cache document."""
    settings = ctx.obj['settings']
    config = _load_config(ctx)
    builder = CacheConfigBuilder(
        backend=backend or settings.cache_backend,
        mode=settings.cache_mode,
        cache_dir=settings.cache_dir_path,
        ignore_error=settings.cache_ignore_error,
    )
    if output:
        try:
            builder.write(config, output)
        except BuildError as e:
            console.error("cache", e.message)
            ctx.exit(1)
        click.echo(f"Cache document written to {output}", err=True)
    else:
        click.echo(json.dumps(builder.build(config).to_document(), indent=2))


@cli.command()
@click.pass_context
def build(ctx):
    """Build all images without starting anything."""
    config = _load_config(ctx)
    _finish(ctx, ImageBuilder(ctx.obj['settings'], _runner(ctx)).build(config))


@cli.command()
@click.pass_context
def up(ctx):
    """Start services from already built images, detached."""
    config = _load_config(ctx)
    _finish(ctx, StackLauncher(ctx.obj['settings'], _runner(ctx)).up(config))


@cli.command('init-credentials')
@click.pass_context
def init_credentials(ctx):
    """Run the auth token generation script."""
    _finish(ctx, CredentialInitializer(ctx.obj['settings'], _runner(ctx)).initialize())


@cli.command()
@click.option('--skip-build', is_flag=True, help='Use images built earlier')
@click.option('--skip-credentials', is_flag=True, help='Do not generate auth tokens')
@click.option('--no-validate', is_flag=True, help='Skip the topology check')
@click.pass_context
def run(ctx, skip_build, skip_credentials, no_validate):
    """Build, start and initialize the devnet."""
    config = _load_config(ctx)
    if not no_validate:
        try:
            TopologyValidator().check(config)
        except ConfigurationError as e:
            _report(e)
            ctx.exit(1)

    pipeline = DevnetPipeline(config, ctx.obj['settings'], _runner(ctx))
    result = pipeline.run(skip_build=skip_build, skip_credentials=skip_credentials)
    click.echo(f"Devnet state: {result.state.value}", err=True)
    ctx.exit(result.exit_code)


@cli.command()
@click.option('--volumes', '-v', is_flag=True, help='Also remove named volumes')
@click.pass_context
def down(ctx, volumes):
    """Stop and remove the devnet containers."""
    result = StackLauncher(ctx.obj['settings'], _runner(ctx)).down(remove_volumes=volumes)
    if result.ok:
        click.echo("Services stopped.", err=True)
    ctx.exit(0 if result.ok else 1)


@cli.command()
@click.pass_context
def ps(ctx):
    """List service status."""
    result = StackLauncher(ctx.obj['settings'], _runner(ctx)).ps()
    ctx.exit(0 if result.ok else 1)


@cli.command()
@click.option('--bridges', '-b', default=2, show_default=True, type=click.IntRange(min=1),
              help='Number of bridge nodes')
@click.option('--platform', default='linux/amd64', show_default=True)
@click.option('--out', '-o', default=None, help='Output file [default: the compose file]')
@click.pass_context
def scaffold(ctx, bridges, platform, out):
    """Generate a compose file for a given number of bridge nodes."""
    path = out or ctx.obj['settings'].compose_path
    try:
        converter = ComposeConverter(bridge_count=bridges, platform=platform)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--bridges')
    converter.convert(path)
    click.echo(f"Compose file with {bridges} bridge node(s) written to {path}")


@cli.command('export-action')
@click.option('--out', '-o', default='.github/actions/local-devnet/action.yml', show_default=True)
@click.pass_context
def export_action(ctx, out):
    """Generate the equivalent CI composite action."""
    settings = ctx.obj['settings']
    config = _load_config(ctx)
    converter = ActionConverter(
        config,
        compose_file=settings.compose_file,
        token_script=settings.token_script,
        cache_mode=settings.cache_mode,
    )
    converter.convert(out)
    click.echo(f"Composite action written to {out}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
