"""
Status output for pipeline stages.

Messages go to stderr so that the stdout of commands such as
``cache-config`` stays machine readable.
"""
import click

_quiet = False


def set_quiet(quiet: bool):
    global _quiet
    _quiet = quiet


def info(stage: str, message: str):
    if not _quiet:
        click.echo(f"[{stage}] {message}", err=True)


def success(stage: str, message: str):
    if not _quiet:
        click.secho(f"[{stage}] {message}", fg="green", err=True)


def warn(stage: str, message: str):
    click.secho(f"[{stage}] Warning: {message}", fg="yellow", err=True)


def error(stage: str, message: str):
    click.secho(f"[{stage}] Error: {message}", fg="red", err=True)
