"""
cli.py

Responsibility: CLI entrypoint for devkit.

Subcommands:
- configure: prompt for machine-local settings and save them
- check:     report which prerequisite tools were found
- compress / extract: 7-Zip wrappers
- sync:      Robocopy wrapper
- build:     devenv.com solution build
- changelog: HTML changelog from GitHub milestones

This module should orchestrate behavior but keep concerns isolated:
- Settings: `settings.py`
- Tool lookup: `tools.py`
- External executables: `archive.py`, `sync.py`, `build.py`
- GitHub API: `github_client.py`
- Changelog: `changelog.py`, `renderer.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from devkit import __version__
from devkit.archive import compress, extract, verify_archive
from devkit.build import build_solution
from devkit.changelog import ChangelogError, generate_changelog
from devkit.github_client import GitHubClient, GitHubError
from devkit.process import ProcessError
from devkit.renderer import render_changelog, write_output
from devkit.settings import (
    Settings,
    SettingsError,
    apply_env_overrides,
    default_settings_path,
    load_settings,
    prompt_settings,
    save_settings,
)
from devkit.sync import sync
from devkit.tools import (
    ToolNotFoundError,
    check_prerequisites,
    find_devenv,
    find_robocopy,
    find_seven_zip,
    require,
)

logger = logging.getLogger("devkit")


class CLIError(RuntimeError):
    pass


def setup_logging(verbose: bool) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root = logging.getLogger("devkit")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def _settings_path(args: argparse.Namespace) -> Path:
    return Path(args.settings) if args.settings else default_settings_path()


def _load(args: argparse.Namespace) -> Settings:
    return apply_env_overrides(load_settings(_settings_path(args)))


def configure_cmd(args: argparse.Namespace) -> int:
    path = _settings_path(args)
    current = load_settings(path)
    # Offer discovered tool locations as defaults for anything not configured yet.
    discovered: dict[str, str] = {}
    for status in check_prerequisites(current):
        if status.setting and status.path and not getattr(current, status.setting):
            discovered[status.setting] = status.path
    if discovered:
        current = replace(current, **discovered)
    updated = prompt_settings(current, input_func=input, names=args.only or None)
    saved = save_settings(updated, path)
    logger.info("Settings saved to %s", saved)
    return 0


def check_cmd(args: argparse.Namespace) -> int:
    settings = _load(args)
    missing = 0
    for status in check_prerequisites(settings):
        if status.found:
            print(f"[ok]      {status.name}: {status.path} ({status.source})")
        else:
            missing += 1
            hint = f" - configure `{status.setting}`" if status.setting else ""
            print(f"[missing] {status.name}{hint}")
    if missing:
        logger.warning("%d prerequisite(s) missing", missing)
        return 1
    return 0


def compress_cmd(args: argparse.Namespace) -> int:
    settings = _load(args)
    seven_zip = require(find_seven_zip(settings))
    archive = compress(
        args.archive,
        args.sources,
        seven_zip=seven_zip,
        archive_type=args.type,
        level=args.level,
        password=args.password,
        excludes=args.exclude,
        update=bool(args.update),
    )
    if args.verify:
        verify_archive(archive, seven_zip=seven_zip, password=args.password)
    logger.info("Created %s", archive)
    return 0


def extract_cmd(args: argparse.Namespace) -> int:
    settings = _load(args)
    seven_zip = require(find_seven_zip(settings))
    dest = extract(
        args.archive,
        args.destination,
        seven_zip=seven_zip,
        password=args.password,
        overwrite=not bool(args.keep_existing),
        flatten=bool(args.flatten),
    )
    logger.info("Extracted into %s", dest)
    return 0


def sync_cmd(args: argparse.Namespace) -> int:
    settings = _load(args)
    robocopy = require(find_robocopy(settings))
    sync(
        args.source,
        args.destination,
        robocopy=robocopy,
        mirror=bool(args.mirror),
        files=args.files,
        exclude_files=args.exclude_file,
        exclude_dirs=args.exclude_dir,
        retries=args.retries,
        wait=args.wait,
        threads=args.threads,
        dry_run=bool(args.dry_run),
        log_file=args.log,
    )
    return 0


def build_cmd(args: argparse.Namespace) -> int:
    settings = _load(args)
    solution = args.solution or settings.solution or "."
    devenv = require(find_devenv(settings))
    build_solution(
        solution,
        devenv=devenv,
        action=args.action,
        configuration=args.configuration or settings.build_configuration,
        platform=args.platform or settings.build_platform,
        project=args.project,
        log_file=args.log,
    )
    return 0


def changelog_cmd(args: argparse.Namespace) -> int:
    settings = _load(args)
    owner = args.owner or settings.github_owner
    repo = args.repo or settings.github_repo
    if not owner or not repo:
        raise CLIError("GitHub owner and repository are required (use --owner/--repo or `devkit configure`)")

    client = GitHubClient(args.token or settings.github_token)
    releases = generate_changelog(
        client,
        owner,
        repo,
        milestone=args.milestone,
        include_open=bool(args.include_open),
    )
    generated_at = None
    if args.timestamp:
        generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    html = render_changelog(
        releases,
        title=args.title or f"{repo} changelog",
        repository_url=f"https://github.com/{owner}/{repo}",
        generated_at=generated_at,
    )
    out = write_output(args.output or settings.changelog_path, html)
    logger.info("Wrote %d release(s) to %s", len(releases), out)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="devkit", description="Developer environment bootstrap and build automation")
    p.add_argument("--version", action="version", version=f"devkit {__version__}")
    p.add_argument("--settings", default=None, help="Settings file (default: $DEVKIT_SETTINGS or ~/.devkit/settings.yml)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log external commands and HTTP paging")
    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("configure", help="Prompt for machine-local settings and save them")
    c.add_argument("--only", nargs="+", default=None, metavar="SETTING", help="Only prompt for these settings")
    c.set_defaults(func=configure_cmd)

    k = sub.add_parser("check", help="Check that prerequisite tools are installed")
    k.set_defaults(func=check_cmd)

    z = sub.add_parser("compress", help="Create or update an archive with 7-Zip")
    z.add_argument("archive", help="Archive to create (type inferred from the extension)")
    z.add_argument("sources", nargs="+", help="Files or directories to add")
    z.add_argument("--type", default=None, help="Archive type (7z, zip, tar, gzip, ...)")
    z.add_argument("--level", type=int, default=None, help="Compression level 0-9")
    z.add_argument("--password", default=None, help="Encrypt the archive")
    z.add_argument("--exclude", action="append", default=[], metavar="PATTERN", help="Exclude files matching PATTERN (repeatable)")
    z.add_argument("--update", action="store_true", help="Only replace files that are newer")
    z.add_argument("--verify", action="store_true", help="Test the archive after creating it")
    z.set_defaults(func=compress_cmd)

    x = sub.add_parser("extract", help="Extract an archive with 7-Zip")
    x.add_argument("archive", help="Archive to extract")
    x.add_argument("destination", help="Output directory")
    x.add_argument("--password", default=None, help="Archive password")
    x.add_argument("--keep-existing", action="store_true", help="Skip files that already exist")
    x.add_argument("--flatten", action="store_true", help="Extract without directory structure")
    x.set_defaults(func=extract_cmd)

    s = sub.add_parser("sync", help="Synchronize directories with Robocopy")
    s.add_argument("source", help="Source directory")
    s.add_argument("destination", help="Destination directory")
    s.add_argument("files", nargs="*", help="File patterns to copy (default: all)")
    s.add_argument("--mirror", action="store_true", help="Delete destination files missing from source")
    s.add_argument("--exclude-file", action="append", default=[], metavar="PATTERN", help="Exclude files (repeatable)")
    s.add_argument("--exclude-dir", action="append", default=[], metavar="DIR", help="Exclude directories (repeatable)")
    s.add_argument("--retries", type=int, default=1, help="Retries on failed copies (default: 1)")
    s.add_argument("--wait", type=int, default=1, help="Seconds between retries (default: 1)")
    s.add_argument("--threads", type=int, default=None, help="Multi-threaded copy with N threads")
    s.add_argument("--dry-run", action="store_true", help="List what would be copied")
    s.add_argument("--log", default=None, help="Write the Robocopy log to this file")
    s.set_defaults(func=sync_cmd)

    b = sub.add_parser("build", help="Build a Visual Studio solution with devenv.com")
    b.add_argument("solution", nargs="?", default=None, help="Solution file or directory (default: settings / current dir)")
    b.add_argument("--action", default="Build", help="Build, Rebuild, Clean or Deploy (default: Build)")
    b.add_argument("--configuration", default=None, help="Solution configuration (default: settings)")
    b.add_argument("--platform", default=None, help="Solution platform (default: settings)")
    b.add_argument("--project", default=None, help="Only build this project")
    b.add_argument("--log", default=None, help="Write the build log to this file")
    b.set_defaults(func=build_cmd)

    g = sub.add_parser("changelog", help="Generate an HTML changelog from GitHub milestones")
    g.add_argument("--owner", default=None, help="GitHub owner (default: settings)")
    g.add_argument("--repo", default=None, help="GitHub repository (default: settings)")
    g.add_argument("--token", default=None, help="GitHub token (or set env GITHUB_TOKEN)")
    g.add_argument("--milestone", default=None, help="Only this milestone (by title)")
    g.add_argument("--include-open", action="store_true", help="Include open milestones")
    g.add_argument("--title", default=None, help="Page title")
    g.add_argument("--timestamp", action="store_true", help="Print the generation time in the footer")
    g.add_argument("-o", "--output", default=None, help="Output file (default: settings changelog_path)")
    g.set_defaults(func=changelog_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(bool(args.verbose))
    try:
        return int(args.func(args))
    except (CLIError, SettingsError, ToolNotFoundError, ProcessError, GitHubError, ChangelogError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except EOFError:
        print("error: input ended before all settings were answered", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
