"""
changelog.py

Responsibility: turn GitHub milestones and their closed issues into release entries.

Each milestone becomes a release; its issues are grouped into sections by label.
Rendering to HTML lives in `renderer.py`; HTTP lives in `github_client.py`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from devkit.github_client import GitHubClient, GitHubError, IssueInfo, Milestone

logger = logging.getLogger(__name__)

# Label (lower case) -> section title. Order decides both label priority and section order.
DEFAULT_SECTIONS: dict[str, str] = {
    "breaking": "Breaking changes",
    "feature": "New features",
    "enhancement": "Enhancements",
    "bug": "Bug fixes",
    "performance": "Performance",
    "documentation": "Documentation",
}

OTHER_SECTION = "Other changes"

DEFAULT_EXCLUDED_LABELS = frozenset({"duplicate", "invalid", "wontfix", "question"})


class ChangelogError(RuntimeError):
    pass


@dataclass(frozen=True)
class Issue:
    number: int
    title: str
    url: str
    labels: tuple[str, ...] = ()
    author: str = ""


@dataclass
class Section:
    title: str
    issues: list[Issue] = field(default_factory=list)


@dataclass
class Release:
    title: str
    number: int
    state: str
    url: str = ""
    description: str = ""
    date: str | None = None
    sections: list[Section] = field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return sum(len(s.issues) for s in self.sections)


def section_for(labels: Iterable[str], mapping: Mapping[str, str] = DEFAULT_SECTIONS) -> str:
    names = {label.lower() for label in labels}
    for label, title in mapping.items():
        if label.lower() in names:
            return title
    return OTHER_SECTION


def _release_date(milestone: Milestone) -> str | None:
    stamp = milestone.due_on or milestone.closed_at
    return stamp[:10] if stamp else None


def _milestone_sort_key(milestone: Milestone) -> tuple[str, str, int]:
    # ISO-8601 timestamps sort lexicographically.
    return (milestone.due_on or "", milestone.closed_at or "", milestone.number)


def group_issues(
    issues: Iterable[IssueInfo],
    *,
    mapping: Mapping[str, str] = DEFAULT_SECTIONS,
    excluded_labels: Iterable[str] = DEFAULT_EXCLUDED_LABELS,
) -> list[Section]:
    excluded = {label.lower() for label in excluded_labels}
    by_title: dict[str, Section] = {}
    for info in issues:
        if excluded.intersection(label.lower() for label in info.labels):
            logger.debug("Skipping #%d (excluded label)", info.number)
            continue
        title = section_for(info.labels, mapping)
        by_title.setdefault(title, Section(title)).issues.append(
            Issue(number=info.number, title=info.title, url=info.html_url, labels=info.labels, author=info.user)
        )

    order = list(dict.fromkeys(mapping.values())) + [OTHER_SECTION]
    sections = [by_title[t] for t in order if t in by_title]
    for section in sections:
        section.issues.sort(key=lambda i: i.number)
    return sections


def build_releases(
    milestones: Iterable[Milestone],
    issues_by_milestone: Mapping[int, Iterable[IssueInfo]],
    *,
    mapping: Mapping[str, str] = DEFAULT_SECTIONS,
    excluded_labels: Iterable[str] = DEFAULT_EXCLUDED_LABELS,
    include_open: bool = False,
) -> list[Release]:
    """
    Build releases newest first. Open milestones are skipped unless `include_open` is set,
    and milestones left without issues after filtering are dropped.
    """
    excluded = frozenset(excluded_labels)
    releases: list[Release] = []
    for milestone in sorted(milestones, key=_milestone_sort_key, reverse=True):
        if milestone.state != "closed" and not include_open:
            continue
        sections = group_issues(issues_by_milestone.get(milestone.number, ()), mapping=mapping, excluded_labels=excluded)
        if not sections:
            logger.info("Milestone %r has no issues to report, skipping", milestone.title)
            continue
        releases.append(
            Release(
                title=milestone.title,
                number=milestone.number,
                state=milestone.state,
                url=milestone.html_url,
                description=milestone.description,
                date=_release_date(milestone),
                sections=sections,
            )
        )
    return releases


def generate_changelog(
    client: GitHubClient,
    owner: str,
    repo: str,
    *,
    milestone: str | None = None,
    include_open: bool = False,
    mapping: Mapping[str, str] = DEFAULT_SECTIONS,
    excluded_labels: Iterable[str] = DEFAULT_EXCLUDED_LABELS,
) -> list[Release]:
    """
    Fetch milestones (or the single named one) and their closed issues from GitHub.
    """
    try:
        if milestone:
            milestones = [client.get_milestone(owner, repo, milestone)]
            include_open = True
        else:
            state = "all" if include_open else "closed"
            milestones = client.list_milestones(owner, repo, state=state)
        logger.info("Found %d milestone(s) in %s/%s", len(milestones), owner, repo)

        issues_by_milestone: dict[int, list[IssueInfo]] = {}
        for m in milestones:
            issues_by_milestone[m.number] = client.list_issues(owner, repo, milestone=m.number, state="closed")
            logger.info("Milestone %r: %d closed issue(s)", m.title, len(issues_by_milestone[m.number]))
    except GitHubError as e:
        raise ChangelogError(f"Could not read milestones from {owner}/{repo}: {e}") from e

    return build_releases(
        milestones,
        issues_by_milestone,
        mapping=mapping,
        excluded_labels=excluded_labels,
        include_open=include_open,
    )
