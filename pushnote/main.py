"""pushnote entry point: a git post-receive hook posting push summaries to chat."""

from __future__ import annotations

from pathlib import Path

import click

from pushnote import __version__
from pushnote.config import GIT_CONFIG_SECTION, ConfigurationError, Settings, load_settings
from pushnote.git.repository import GitCommandError, GitRepository
from pushnote.hook import PushNotifier, RepoContext
from pushnote.models import RefUpdateEvent
from pushnote.transports import SlackWebhookTransport, StdoutTransport, Transport
from pushnote.utils.logging import get_logger, setup_logging

log = get_logger(__name__)

EXIT_CONFIG_ERROR = 1

USAGE_HELP = f"""\
pushnote posts a summary of every push to a Slack incoming webhook.

Required:
  git config {GIT_CONFIG_SECTION}.webhook-url 'https://hooks.slack.com/services/...'

Optional ({GIT_CONFIG_SECTION}.<key>):
  channel, username          where the message goes and who posts it
  icon-url, icon-emoji       avatar of the posting user
  repo-nice-name             repository name shown in messages
  repos-root                 path prefix removed to form %repo_path%
  changeset-url-pattern      link per commit, e.g. https://git.example.com/%repo_path%/commit/%rev_hash%
  compareurl-pattern         link for the pushed range, uses %old_rev_hash% and %new_rev_hash%
  branch-regexp              only notify for refs whose short name matches
  show-only-last-commit      true to list only the newest commit
  show-full-commit           true to include full commit messages
"""


def _make_transport(settings: Settings, dry_run: bool) -> Transport:
    if dry_run:
        return StdoutTransport()
    return SlackWebhookTransport(settings.webhook_url, timeout=settings.http_timeout)


@click.command()
@click.argument("refname", required=False)
@click.argument("oldrev", required=False)
@click.argument("newrev", required=False)
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--dry-run", is_flag=True, help="Print payloads to stdout instead of posting them")
@click.version_option(__version__, prog_name="pushnote")
def cli(
    refname: str | None,
    oldrev: str | None,
    newrev: str | None,
    config_path: str | None,
    log_level: str | None,
    dry_run: bool,
) -> None:
    """Notify chat about pushed ref updates.

    Reads "<old-rev> <new-rev> <ref-name>" lines from stdin like a
    post-receive hook, or handles the single update REFNAME OLDREV NEWREV
    given as arguments, like an update hook.
    """
    given = [arg for arg in (refname, oldrev, newrev) if arg is not None]
    if given and len(given) != 3:
        raise click.UsageError("REFNAME, OLDREV and NEWREV must be given together")

    repo = GitRepository()
    try:
        settings = load_settings(config_path, repo.config_section(GIT_CONFIG_SECTION))
        if not dry_run:
            settings.require_webhook()
    except (ConfigurationError, GitCommandError) as e:
        click.echo(f"pushnote: {e}\n", err=True)
        click.echo(USAGE_HELP, err=True)
        raise SystemExit(EXIT_CONFIG_ERROR) from e

    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    setup_logging(level=settings.log_level, json_output=settings.log_json)

    context = RepoContext.detect(Path.cwd(), settings)
    with _make_transport(settings, dry_run) as transport:
        notifier = PushNotifier(settings, repo, transport, context)
        if refname is not None:
            notifier.notify(RefUpdateEvent(old_id=oldrev, new_id=newrev, ref_name=refname))
        else:
            sent = notifier.run(click.get_text_stream("stdin"))
            log.debug("hook_finished", notifications=sent)


if __name__ == "__main__":
    cli()
