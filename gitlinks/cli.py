import click

from .cherry import cherry_report, format_status
from .gitrev import GitLinksError, GitRepo
from .linker import LocationLinker
from .runtime import set_verbose_logging
from .utils import get_config_path, load_settings

MANUAL = """\
NAME
    git-linkify - turn [revision:]path[:lineno] references into links

SYNOPSIS
    git-linkify [-m] [-p] [-l] [-v] [--config PATH] [FILE]...

DESCRIPTION
    Reads the named files (or standard input) line by line and replaces
    every reference of the form

        [revision:]path[:lineno][:]

    with a link to the file on the hosting site, for example

        grep.c:42:  ->  https://github.com/openssl/openssl/blob/master/grep.c#L42

    Paths are relative to the current directory. Without a revision the
    current branch is used. A revision that also exists as a branch on
    the hosting remote is kept by name; any other revision is replaced
    by its abbreviated commit hash. References whose revision or path
    cannot be found are left as they are.

    The command must be run inside a checkout that has a remote pointing
    at the hosting root.

OPTIONS
    -m, --markdown
        Write [reference](link) instead of the bare link.

    -p, --permanent
        Always use the full commit hash, even for published branches.

    -l, --list
        Print only the links that resolved, one per line, and drop all
        other text.

    -v, --verbose
        Report git failures and lookups on standard error.

    --config PATH
        Read settings from PATH instead of {config_path}.

CONFIGURATION
    hosting_root   base URL of the repository
                   (default https://github.com/openssl/openssl)
    remote         remote name to use instead of matching remote URLs
    abbrev         length of abbreviated commit hashes
"""


def show_manual(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.echo_via_pager(MANUAL.format(config_path=get_config_path()))
    ctx.exit()


def open_repo(config_path):
    """Load settings and open the repository, or abort the command."""
    try:
        settings = load_settings(config_path)
        repo = GitRepo.open(
            hosting_root=settings["hosting_root"],
            remote=settings["remote"],
            abbrev=settings["abbrev"],
        )
    except (GitLinksError, ValueError) as err:
        raise click.ClickException(str(err)) from err
    return settings, repo


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-m", "--markdown", is_flag=True, help="Write [reference](link) instead of the bare link."
)
@click.option(
    "-p",
    "--permanent",
    is_flag=True,
    help="Always link to the full commit hash, never to a branch name.",
)
@click.option(
    "-l",
    "--list",
    "list_mode",
    is_flag=True,
    help="Print only resolved links, one per line.",
)
@click.option("-v", "--verbose", is_flag=True, help="Report git failures on stderr.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Alternate config file.",
)
@click.option(
    "--man",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=show_manual,
    help="Show the full manual and exit.",
)
@click.argument("files", nargs=-1, type=click.File("r", errors="replace"))
def linkify(markdown, permanent, list_mode, verbose, config_path, files):
    """
    Rewrite [revision:]path[:lineno] references in FILES (or stdin) into links.
    """
    set_verbose_logging(verbose)
    settings, repo = open_repo(config_path)
    linker = LocationLinker(
        repo,
        hosting_root=settings["hosting_root"],
        markdown=markdown,
        permanent=permanent,
    )

    streams = files or (click.get_text_stream("stdin", errors="replace"),)
    for stream in streams:
        for line in linker.filter_lines(stream, list_mode=list_mode):
            click.echo(line, nl=False)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--missing", is_flag=True, help="Only list commits not yet picked.")
@click.option("-m", "--markdown", is_flag=True, help="Write a markdown task list.")
@click.option("-v", "--verbose", is_flag=True, help="Report git failures on stderr.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Alternate config file.",
)
@click.argument("source")
@click.argument("target")
def cherry_report_cmd(missing, markdown, verbose, config_path, source, target):
    """
    Show which commits of SOURCE since the merge base have been
    cherry-picked onto TARGET.
    """
    set_verbose_logging(verbose)
    settings, repo = open_repo(config_path)
    try:
        statuses = cherry_report(repo, source, target)
    except GitLinksError as err:
        raise click.ClickException(str(err)) from err

    for status in statuses:
        if missing and status.picked:
            continue
        click.echo(
            format_status(status, markdown=markdown, hosting_root=settings["hosting_root"])
        )


def main():
    linkify()


def cherry_main():
    cherry_report_cmd()


if __name__ == "__main__":
    main()
