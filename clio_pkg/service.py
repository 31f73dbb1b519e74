"""
Site-level operations: generate the markdown tree, render the HTML tree,
publish the rendered site or plan a publish.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from .collaborators import Auth, CommitAuthor, Publisher, PublisherConfig, Repo
from .errors import ClioError, ValidationError
from .paths import site_html_path
from .settings import ParamKey


@dataclass
class SiteContext:
    """Per-request context: which site, and a cancel signal for the run."""
    site_slug: Optional[str] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def require_site_slug(self) -> str:
        if not self.site_slug:
            raise ValidationError("No site slug in context")
        return self.site_slug

    def cancel(self):
        self.cancel_event.set()


class SiteService:
    def __init__(self, repo: Repo, generator, renderer, param_manager,
                 publisher: Optional[Publisher] = None, assets=None, logger=None):
        self.repo = repo
        self.generator = generator
        self.renderer = renderer
        self.params = param_manager
        self.publisher = publisher
        self.assets = assets
        self.logger = logger or logging.getLogger('clio.service')

    def _fetch(self, what, site_slug, fn, *args):
        try:
            return fn(*args)
        except ClioError as e:
            e.site_slug = e.site_slug or site_slug
            self.logger.error(f"Cannot get {what}: {e}")
            raise
        except Exception as e:
            self.logger.error(f"Cannot get {what} for site {site_slug}: {e}")
            raise ClioError(f"Cannot get {what}: {e}", site_slug=site_slug) from e

    def _load_site(self, site_slug):
        site = self._fetch('site', site_slug, self.repo.get_site_by_slug, site_slug)
        site.validate()
        return site

    def generate_markdown(self, ctx: SiteContext):
        """Write the markdown tree of the context's site. Returns written paths."""
        site_slug = ctx.require_site_slug()
        contents = self._fetch('contents', site_slug, self.repo.get_all_content_with_meta)
        self.logger.info(f"Generating markdown for site {site_slug} ({len(contents)} items)")
        return self.generator.generate(site_slug, contents, ctx.cancel_event)

    def generate_html(self, ctx: SiteContext):
        """Render the HTML tree of the context's site. Returns written paths."""
        site_slug = ctx.require_site_slug()
        site = self._load_site(site_slug)
        contents = self._fetch('contents', site_slug, self.repo.get_all_content_with_meta)
        sections = self._fetch('sections', site_slug, self.repo.get_sections)
        image_context = self._fetch('image context', site_slug, self.repo.get_image_context)

        self.logger.info(f"Rendering HTML for site {site_slug} ({len(contents)} items)")
        written = self.renderer.render_site(site, contents, sections, image_context, ctx.cancel_event)
        if self.assets is not None:
            self.assets.copy_assets(site_slug)
        return written

    def publisher_config(self, commit_message: str = '') -> PublisherConfig:
        message = commit_message or self.params.get(ParamKey.PUBLISH_COMMIT_MESSAGE)
        return PublisherConfig(
            repo_url=self.params.get(ParamKey.PUBLISH_REPO_URL),
            branch=self.params.get(ParamKey.PUBLISH_BRANCH),
            auth=Auth(token=self.params.get(ParamKey.PUBLISH_AUTH_TOKEN)),
            commit_author=CommitAuthor(
                user_name=self.params.get(ParamKey.PUBLISH_COMMIT_USER_NAME),
                user_email=self.params.get(ParamKey.PUBLISH_COMMIT_USER_EMAIL),
                message=message,
            ),
        )

    def _require_publisher(self):
        if self.publisher is None:
            raise ValidationError("No publisher configured")
        return self.publisher

    def publish(self, ctx: SiteContext, commit_message: str = '') -> str:
        """Publish the rendered HTML tree. Returns the publisher's commit reference."""
        site_slug = ctx.require_site_slug()
        publisher = self._require_publisher()
        cfg = self.publisher_config(commit_message)
        source_dir = site_html_path(self.renderer.sites_base_path, site_slug)

        publisher.validate(cfg)
        self.logger.info(f"Publishing site {site_slug} from {source_dir} to {cfg.repo_url} ({cfg.branch})")
        commit_ref = publisher.publish(cfg, source_dir)
        self.logger.info(f"Published site {site_slug}: {commit_ref}")
        return commit_ref

    def plan(self, ctx: SiteContext):
        """Dry-run a publish. Returns the publisher's PlanReport."""
        site_slug = ctx.require_site_slug()
        publisher = self._require_publisher()
        cfg = self.publisher_config()
        source_dir = site_html_path(self.renderer.sites_base_path, site_slug)

        publisher.validate(cfg)
        report = publisher.plan(cfg, source_dir)
        self.logger.info(f"Publish plan for site {site_slug}: {report.summary}")
        return report
