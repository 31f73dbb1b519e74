"""
Interfaces to the external collaborators: site store, template rendering
and publishing. Clio only consumes these; implementations live elsewhere
(SnapshotRepo and TemplateManager are the bundled ones).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .models import Content, ImageContext, Section, Site


class Repo(Protocol):
    def get_site_by_slug(self, slug: str) -> Site: ...

    def get_all_content_with_meta(self) -> Sequence[Content]: ...

    def get_sections(self) -> Sequence[Section]: ...

    def get_param_by_ref_key(self, ref_key: str) -> Optional[str]: ...

    def get_image_context(self) -> ImageContext: ...


class TemplateRenderer(Protocol):
    def render(self, key, data: dict) -> str: ...


@dataclass
class Auth:
    token: str = ''


@dataclass
class CommitAuthor:
    user_name: str = ''
    user_email: str = ''
    message: str = ''


@dataclass
class PublisherConfig:
    repo_url: str = ''
    branch: str = ''
    auth: Auth = field(default_factory=Auth)
    commit_author: CommitAuthor = field(default_factory=CommitAuthor)


@dataclass
class PlanReport:
    """Dry-run publish result: what a publish would change on the remote."""
    summary: str = ''
    added: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(self.added or self.changed or self.removed)


class Publisher(Protocol):
    def validate(self, cfg: PublisherConfig) -> None: ...

    def publish(self, cfg: PublisherConfig, source_dir: str) -> str: ...

    def plan(self, cfg: PublisherConfig, source_dir: str) -> PlanReport: ...
