"""
renderer.py

Responsibility: Deterministically render the HTML changelog.

Rules:
- Templates are loaded from the package's `templates/` directory.
- Output is autoescaped; issue titles come from GitHub and are untrusted text.
- Undefined template variables are errors (StrictUndefined).
- Written files always use UTF-8 and `\\n` newlines for stable output.

This module intentionally does NOT know about GitHub, git, or CLI parsing.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from devkit.changelog import ChangelogError, Release

CHANGELOG_TEMPLATE = "changelog.html.j2"


def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("devkit", "templates"),
        autoescape=select_autoescape(enabled_extensions=("html", "j2"), default_for_string=True),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_changelog(
    releases: Sequence[Release],
    *,
    title: str,
    repository_url: str = "",
    generated_at: str | None = None,
) -> str:
    """
    Render releases into a standalone HTML page.

    `generated_at` is printed verbatim; leave it unset for byte-identical output across runs.
    """
    try:
        template = _environment().get_template(CHANGELOG_TEMPLATE)
        return template.render(
            title=title,
            repository_url=repository_url,
            generated_at=generated_at,
            releases=releases,
        )
    except TemplateError as e:
        raise ChangelogError(f"Failed rendering {CHANGELOG_TEMPLATE}: {e}") from e


def write_output(path: str | Path, text: str) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8", newline="\n")
    return out
