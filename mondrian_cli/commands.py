# -*- encoding: utf-8 -*-
"""mon-cli – command line tool for the Mondrian REST server

For more information run: mon-cli --help

The server address is taken from ``--base-url`` or the ``MON_CLI_BASE_URL``
environment variable. To enable full exception debugging set the
``MON_CLI_ERROR_DEBUG`` environment variable.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass

import click
import httpx

from .client import Client
from .errors import InternalError, UserError
from .logging import enable_debug, get_logger, mask_secret
from .matrix import TestRunner
from .metadata import parse_cube_description, parse_cube_descriptions, parse_members
from .query import FlushRequest, ResponseFormat, build_request
from .settings import Settings, error_debug_enabled, get_settings

COMMAND_ALIASES = {
    "d": "describe",
    "t": "test",
    "f": "flush",
    "q": "query",
}

EPILOG = """\
Multi-value options are repeated, the following are equivalent here:

    -d Geography.State -d Date.Year

Cuts within a level are given with one -c option, members comma-delimited:

    -c "Geography.State.State.1,2,3"
"""


@dataclass
class CliState:
    settings: Settings | None = None
    verbose: bool = False
    transport: httpx.BaseTransport | None = None

    def client(self) -> Client:
        return Client(self.settings.require_base_url(),
                      timeout=self.settings.timeout,
                      transport=self.transport)


class AliasedGroup(click.Group):
    """Group accepting the one-letter command aliases."""

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx, args):
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name if cmd else None, cmd, args


@click.group(cls=AliasedGroup, epilog=EPILOG)
@click.option('--base-url', '-b',
              help="Base url; this or env var MON_CLI_BASE_URL must be set")
@click.option('--timeout', type=float,
              help="Request timeout in seconds")
@click.option('--verbose', '-v', is_flag=True, default=False,
              help="Verbose output")
@click.pass_context
def cli(ctx, base_url, timeout, verbose):
    """Command line interface for the Mondrian REST API."""
    state = ctx.ensure_object(CliState)
    state.settings = get_settings(base_url=base_url, timeout=timeout)
    state.verbose = verbose

    if verbose:
        enable_debug()


################################################################################
# Command: describe

@cli.command()
@click.argument('cube_name', required=False)
@click.option('--members', '-m',
              help="Get members of the level (fully qualified name)")
@click.option('--raw', '-r', is_flag=True, default=False,
              help="Raw output of the server response")
@click.pass_obj
def describe(state, cube_name, members, raw):
    """Get information about cubes; without CUBE_NAME all cubes."""
    if members and not cube_name:
        raise click.UsageError("--members requires a cube name")

    with state.client() as client:
        builder = client.query()
        if cube_name:
            builder.cube(cube_name)
        if members:
            builder.members(members)

        url = builder.url()
        if state.verbose:
            click.echo(url)

        body = client.fetch(url)

    if raw:
        click.echo(body)
    elif members:
        click.echo(parse_members(body).describe(), nl=False)
    elif cube_name:
        click.echo(parse_cube_description(body).describe(), nl=False)
    else:
        click.echo(parse_cube_descriptions(body).describe(), nl=False)


################################################################################
# Command: test

@cli.command()
@click.argument('cube_name', required=False)
@click.pass_context
def test(ctx, cube_name):
    """Test the schema of one cube, or all cubes, for errors."""
    state = ctx.obj

    with state.client() as client:
        if cube_name:
            cubes = [client.cube(cube_name)]
        else:
            cubes = client.catalog().cubes

        runner = TestRunner(client,
                            on_test=lambda t: click.echo(t.describe()),
                            on_result=lambda r: click.echo(f"  {r}"))
        results = runner.run(cubes)

    click.echo()
    click.echo("tested %d of %d cubes" % (len(results), len(cubes)))

    failed = [result for result in results if not result.passed]
    if failed:
        click.echo("%d ERRORS:" % sum(len(r.failures) for r in failed))
        for cube_result in failed:
            for failure in cube_result.failures:
                error = failure.error
                click.echo("%s: %s - %s" % (cube_result.cube, error.error_type, error))
        ctx.exit(1)
    else:
        click.echo("test passed")


################################################################################
# Command: flush

@cli.command()
@click.argument('secret', required=False)
@click.pass_obj
def flush(state, secret):
    """Ask the server to flush schema and cache and reset.

    SECRET defaults to the MON_CLI_SECRET environment variable.
    """
    if secret:
        state.settings = state.settings.model_copy(update={"secret": secret})
    secret = state.settings.require_secret()

    with state.client() as client:
        if state.verbose:
            url = build_request(FlushRequest, secret=secret).url(client.base_url)
            click.echo(mask_secret(url, secret))
        client.flush(secret)

    click.echo("flushed")


################################################################################
# Command: query

@cli.command()
@click.argument('cube_name')
@click.option('--drilldown', '-d', 'drilldowns', multiple=True,
              help="Fully qualified level name '.' delimited. Takes multiple.")
@click.option('--measure', '-m', 'measures', multiple=True,
              help="Measure name. Takes multiple.")
@click.option('--cut', '-c', 'cuts', multiple=True,
              help="Level name with comma delimited members. Takes multiple.")
@click.option('--property', '-p', 'properties', multiple=True,
              help="Level name followed by property name. Takes multiple.")
@click.option('--debug', is_flag=True, default=False)
@click.option('--parents', is_flag=True, default=False)
@click.option('--nonempty', is_flag=True, default=False)
@click.option('--distinct', is_flag=True, default=False)
@click.option('--sparse', is_flag=True, default=False)
@click.option('--format', '-f', 'response_format',
              type=click.Choice([f.value for f in ResponseFormat]),
              default=ResponseFormat.JSON.value,
              help="json, jsonrecords, or csv")
@click.pass_obj
def query(state, cube_name, drilldowns, measures, cuts, properties,
          debug, parents, nonempty, distinct, sparse, response_format):
    """Run an aggregate query on a cube."""
    if not drilldowns or not measures:
        raise click.UsageError("Dimension and measure must be supplied")

    with state.client() as client:
        builder = (
            client.query()
            .cube(cube_name)
            .drilldowns(drilldowns)
            .measures(measures)
            .cuts(cuts)
            .properties(properties)
            .debug(debug)
            .parents(parents)
            .nonempty(nonempty)
            .distinct(distinct)
            .sparse(sparse)
            .format(response_format)
        )

        url = builder.url()
        if state.verbose:
            click.echo(url)

        click.echo(client.fetch(url))


def main(*args, **kwargs):
    logger = get_logger()

    try:
        cli(*args, **kwargs)

    except (InternalError, UserError) as e:
        # InternalError: the server failed or sent something unexpected.
        # UserError: the names, query or configuration need fixing.
        if error_debug_enabled():
            raise
        else:
            logger.debug("command failed", exc_info=True)
            click.echo("\nError: {}".format(e), err=True)
            sys.exit(1)
