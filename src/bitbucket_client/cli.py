"""
Command-line interface for the Bitbucket client.
"""

import click
import json
import sys
import traceback
from functools import wraps
from typing import List, Optional, Dict, Any, Callable
from pathlib import Path

import requests
import yaml

from . import __version__
from .config import ConfigManager, AppConfig
from .confirmation import ConfirmImpact, always_confirm, threshold_policy
from .context import ClientContext
from .error_handling import BitbucketClientError
from .logging import setup_logging, LoggerConfig
from .models import (
    AtlassianCredential, BasicCredential, OAuthConsumer, Repository,
    RepositoryChanges, ForkPolicy, TeamRole, LANGUAGES
)

FORK_POLICIES = [p.value for p in ForkPolicy]
ROLES = [r.value for r in TeamRole]
OUTPUT_FORMATS = ['table', 'json', 'yaml']


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase verbosity (use -v or -vv)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int) -> None:
    """
    Bitbucket Client - manage Bitbucket Cloud repositories and teams.

    Log in once with 'bitbucket login', pick a team with
    'bitbucket team select', then list, create, update or delete
    repositories of that team.
    """
    ctx.ensure_object(dict)

    try:
        app_config = ConfigManager(config).get_config()
    except (ValueError, OSError, yaml.YAMLError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(LoggerConfig.from_app_config(app_config.logging, level=verbosity_level(verbose)))

    ctx.obj['config'] = app_config
    ctx.obj['verbose'] = verbose


def verbosity_level(verbose: int) -> Optional[str]:
    """Map -v flags to a log level; None keeps the configured level."""
    if verbose == 0:
        return None
    elif verbose == 1:
        return "INFO"
    return "DEBUG"


def handle_errors(func: Callable) -> Callable:
    """Report client and transport errors and exit with status 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (BitbucketClientError, requests.RequestException) as e:
            click.echo(f"Error: {e}", err=True)
            ctx = click.get_current_context()
            if ctx.obj.get('verbose', 0) > 1:
                traceback.print_exc()
            sys.exit(1)
    return wrapper


def prompt_for_team(options: List[str]) -> str:
    """Ask the user to pick one of several teams."""
    click.echo("Multiple teams are visible:")
    for index, option in enumerate(options, start=1):
        click.echo(f"  {index}. {option}")
    return click.prompt("Select a team", type=click.Choice(options))


def ask_confirmation(action: str) -> bool:
    return click.confirm(f"{action}?", default=False)


def build_context(ctx: click.Context, yes: bool = False, load_session: bool = True) -> ClientContext:
    """
    Create the client context for a command.

    Args:
        ctx: Click context carrying the loaded configuration
        yes: Skip confirmation prompts
        load_session: Rehydrate the saved session
    """
    config: AppConfig = ctx.obj['config']
    if yes:
        confirm = always_confirm
    else:
        confirm = threshold_policy(ConfirmImpact.parse(config.confirmation.threshold), ask_confirmation)

    return ClientContext(config, confirm=confirm, resolver=prompt_for_team, load_session=load_session)


# Authentication commands

@cli.command()
@click.option('--username', '-u', help='Bitbucket username (basic auth)')
@click.option('--password', '-p', help='App password, or Atlassian password with --consumer-key')
@click.option('--email', help='Atlassian account email (OAuth login)')
@click.option('--consumer-key', help='OAuth consumer key; switches to OAuth login')
@click.option('--consumer-secret', help='OAuth consumer secret')
@click.option('--save/--no-save', default=True, help='Persist the session for later commands')
@click.pass_context
@handle_errors
def login(
    ctx: click.Context,
    username: Optional[str],
    password: Optional[str],
    email: Optional[str],
    consumer_key: Optional[str],
    consumer_secret: Optional[str],
    save: bool
) -> None:
    """
    Log in with basic credentials or through an OAuth consumer.

    Missing values are prompted for. Passing --consumer-key selects the
    OAuth password grant, which is required for internal API calls.

    Examples:

        bitbucket login -u jdoe

        bitbucket login --email jdoe@example.com --consumer-key KEY
    """
    with build_context(ctx, load_session=False) as context:
        if consumer_key:
            email = email or click.prompt("Atlassian account email")
            password = password or click.prompt("Atlassian password", hide_input=True)
            consumer_secret = consumer_secret or click.prompt("OAuth consumer secret", hide_input=True)
            session = context.authenticator.login_oauth(
                AtlassianCredential(email=email, password=password),
                OAuthConsumer(key=consumer_key, secret=consumer_secret)
            )
        else:
            username = username or click.prompt("Username")
            password = password or click.prompt("App password", hide_input=True)
            session = context.authenticator.login_basic(BasicCredential(username=username, password=password))

        if save:
            context.session_manager.persist()

    click.echo(f"Logged in as {session.display_name} ({session.auth_type.value} auth)")


@cli.command()
@click.pass_context
@handle_errors
def logout(ctx: click.Context) -> None:
    """Forget the current session, including its saved copy."""
    with build_context(ctx, load_session=False) as context:
        context.session_manager.close()
    click.echo("Logged out")


@cli.command()
@click.option('--format', '-f', 'output_format', type=click.Choice(OUTPUT_FORMATS), default='table')
@click.pass_context
@handle_errors
def whoami(ctx: click.Context, output_format: str) -> None:
    """Show the logged-in user and the selected team."""
    with build_context(ctx) as context:
        session = context.session_manager.get()

    info = {
        "display_name": session.display_name,
        "auth_type": session.auth_type.value,
        "selected_team": session.selected_team
    }
    if output_format == 'table':
        for key, value in info.items():
            click.echo(f"{key}: {value if value is not None else '-'}")
    else:
        emit(info, output_format)


# Team commands

@cli.group()
def team() -> None:
    """List teams and choose the one repository commands act on."""


@team.command('list')
@click.option('--role', '-r', type=click.Choice(ROLES), default='member', help='Your role in the team')
@click.option('--format', '-f', 'output_format', type=click.Choice(OUTPUT_FORMATS), default='table')
@click.pass_context
@handle_errors
def team_list(ctx: click.Context, role: str, output_format: str) -> None:
    """List teams visible to you."""
    with build_context(ctx) as context:
        teams = context.teams.list_teams(role)

    if output_format == 'table':
        display_table(
            [t.to_dict() for t in teams],
            [("username", "TEAM"), ("display_name", "NAME")]
        )
    else:
        emit([t.to_dict() for t in teams], output_format)


@team.command('select')
@click.argument('team_id', required=False)
@click.option('--role', '-r', type=click.Choice(ROLES), default='member', help='Your role in the team')
@click.pass_context
@handle_errors
def team_select(ctx: click.Context, team_id: Optional[str], role: str) -> None:
    """
    Select the team repository commands default to.

    Without TEAM_ID the visible teams are listed; if there is more than
    one you are asked to choose.
    """
    with build_context(ctx) as context:
        chosen = context.teams.select_team(team_id, role=role)
        context.session_manager.persist()
    click.echo(f"Selected team: {chosen}")


@team.command('current')
@click.pass_context
@handle_errors
def team_current(ctx: click.Context) -> None:
    """Print the selected team."""
    with build_context(ctx) as context:
        current = context.teams.current_team()
    if current is None:
        click.echo("No team selected", err=True)
        sys.exit(1)
    click.echo(current)


# Repository commands

@cli.group()
def repo() -> None:
    """List, create, update and delete repositories."""


@repo.command('list')
@click.option('--slug', '-s', help='Fetch only this repository')
@click.option('--project-key', '-k', help='Only repositories in this project')
@click.option('--team', '-t', 'team_id', help='Team to list (defaults to the selected team)')
@click.option('--format', '-f', 'output_format', type=click.Choice(OUTPUT_FORMATS), default='table')
@click.pass_context
@handle_errors
def repo_list(
    ctx: click.Context,
    slug: Optional[str],
    project_key: Optional[str],
    team_id: Optional[str],
    output_format: str
) -> None:
    """List repositories of a team."""
    with build_context(ctx) as context:
        repositories = context.repositories.list_repositories(slug=slug, project_key=project_key, team=team_id)

    if output_format == 'table':
        display_table(
            [Repository.from_api(r).to_dict() for r in repositories],
            [
                ("slug", "SLUG"),
                ("project_key", "PROJECT"),
                ("is_private", "PRIVATE"),
                ("language", "LANGUAGE"),
                ("fork_policy", "FORK POLICY")
            ]
        )
    else:
        emit(repositories, output_format)


@repo.command('create')
@click.argument('slug')
@click.option('--project-key', '-k', help='Project to create the repository in')
@click.option('--private/--public', 'is_private', default=True, help='Repository visibility')
@click.option('--description', '-d', default='', help='Repository description')
@click.option('--language', '-l', type=click.Choice(LANGUAGES, case_sensitive=False), default='')
@click.option('--fork-policy', type=click.Choice(FORK_POLICIES), default=ForkPolicy.NO_FORKS.value)
@click.option('--team', '-t', 'team_id', help='Owning team (defaults to the selected team)')
@click.option('--dry-run', is_flag=True, help='Show the request without sending it')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@handle_errors
def repo_create(
    ctx: click.Context,
    slug: str,
    project_key: Optional[str],
    is_private: bool,
    description: str,
    language: str,
    fork_policy: str,
    team_id: Optional[str],
    dry_run: bool,
    yes: bool
) -> None:
    """Create a git repository."""
    changes = RepositoryChanges(
        project_key=project_key,
        is_private=is_private,
        description=description,
        language=language,
        fork_policy=fork_policy
    )
    with build_context(ctx, yes) as context:
        result = context.repositories.create_repository(slug, changes, team=team_id, dry_run=dry_run)

    if result is not None:
        emit(result, 'json')


@repo.command('update')
@click.argument('slug')
@click.option('--project-key', '-k', help='Move the repository to this project')
@click.option('--private', 'is_private', type=click.BOOL, default=None, help='true or false')
@click.option('--description', '-d', default=None, help='New description')
@click.option('--language', '-l', type=click.Choice(LANGUAGES, case_sensitive=False), default=None)
@click.option('--fork-policy', type=click.Choice(FORK_POLICIES), default=None)
@click.option('--team', '-t', 'team_id', help='Owning team (defaults to the selected team)')
@click.option('--dry-run', is_flag=True, help='Show the request without sending it')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@handle_errors
def repo_update(
    ctx: click.Context,
    slug: str,
    project_key: Optional[str],
    is_private: Optional[bool],
    description: Optional[str],
    language: Optional[str],
    fork_policy: Optional[str],
    team_id: Optional[str],
    dry_run: bool,
    yes: bool
) -> None:
    """Change settings of a repository. Only the given options are sent."""
    changes = RepositoryChanges(
        project_key=project_key,
        is_private=is_private,
        description=description,
        language=language,
        fork_policy=fork_policy
    )
    with build_context(ctx, yes) as context:
        result = context.repositories.update_repository(slug, changes, team=team_id, dry_run=dry_run)

    if result is not None:
        emit(result, 'json')


@repo.command('delete')
@click.argument('slug')
@click.option('--redirect-to', help='URL the old repository location redirects to')
@click.option('--team', '-t', 'team_id', help='Owning team (defaults to the selected team)')
@click.option('--dry-run', is_flag=True, help='Show the request without sending it')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@handle_errors
def repo_delete(
    ctx: click.Context,
    slug: str,
    redirect_to: Optional[str],
    team_id: Optional[str],
    dry_run: bool,
    yes: bool
) -> None:
    """
    Delete a repository.

    This cannot be undone. Forks of the repository are kept.
    """
    with build_context(ctx, yes) as context:
        deleted = context.repositories.delete_repository(slug, redirect_to=redirect_to, team=team_id, dry_run=dry_run)

    if deleted:
        click.echo(f"Deleted repository {slug}")


# Configuration

@cli.command()
@click.option('--format', '-f', 'output_format', type=click.Choice(OUTPUT_FORMATS), default='table')
@click.pass_context
def config(ctx: click.Context, output_format: str) -> None:
    """Display the effective configuration."""
    app_config: AppConfig = ctx.obj['config']
    config_dict = app_config.to_dict()

    if output_format == 'table':
        display_config_table(config_dict)
    else:
        emit(config_dict, output_format)


def emit(data: Any, output_format: str) -> None:
    """Print data as JSON or YAML."""
    if output_format == 'yaml':
        click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


def display_table(rows: List[Dict[str, Any]], columns: List[tuple]) -> None:
    """Display rows as an aligned text table."""
    if not rows:
        click.echo("No results")
        return

    def cell(value: Any) -> str:
        if value is None or value == '':
            return '-'
        return str(value)

    widths = [
        max(len(title), *(len(cell(row.get(key))) for row in rows))
        for key, title in columns
    ]
    click.echo("  ".join(title.ljust(width) for (_, title), width in zip(columns, widths)))
    for row in rows:
        click.echo("  ".join(cell(row.get(key)).ljust(width) for (key, _), width in zip(columns, widths)))


def display_config_table(config_dict: Dict[str, Any]) -> None:
    """Display configuration sections in table format."""
    click.echo("\nCurrent Configuration:")
    click.echo("-" * 50)

    for section_name, section in config_dict.items():
        click.echo(f"\n[{section_name}]")
        for key, value in section.items():
            click.echo(f"  {key}: {value}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
