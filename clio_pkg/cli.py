#!/usr/bin/env python3
"""
Command-line interface for Clio.

    clio markdown --snapshot site.yml --site my-blog
    clio html --snapshot site.yml --site my-blog --workers 4 --minify
    clio init yml
"""

import argparse
import logging
import os
import sys
import time
from datetime import datetime

from . import __version__
from .assets import AssetPublisher
from .errors import ClioError
from .generator import Generator
from .renderer import HTMLRenderer
from .service import SiteContext, SiteService
from .settings import ClioSettings, ParamKey, ParamManager
from .snapshot import SnapshotRepo
from .templates import TemplateManager


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Generating markdown for site",
            "Generated ",
            "Rendering HTML for site",
            "Rendered ",
            "Copied assets from",
            "Loaded configuration from",
            "Finished in",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging(logs_dir=None):
    """Log everything to a file under logs/, and selected lines to the console."""
    logger = logging.getLogger('clio')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

        logs_dir = logs_dir or os.path.join(os.getcwd(), 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = datetime.now().strftime('clio_%Y-%m-%d_%H-%M-%S.log')
        file_handler = logging.FileHandler(os.path.join(logs_dir, log_filename))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    return logger


def build_parser():
    parser = argparse.ArgumentParser(prog='clio', description='Clio - static site generation engine')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', required=True)

    for name, help_text in (('markdown', 'Write the markdown document tree'),
                            ('html', 'Render the HTML tree')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--snapshot', type=str, required=True,
                         help='YAML or JSON file with the site, sections and content')
        sub.add_argument('--site', type=str, help='Site slug (defaults to the snapshot site)')
        sub.add_argument('--sites-base-path', dest='sites_base_path', type=str,
                         help='Base directory for site workspaces')
        sub.add_argument('--config-dir', dest='config_dir', type=str,
                         help='Directory holding clio.yml / clio.yaml / clio.json')

    html = subparsers.choices['html']
    html.add_argument('--templates', type=str, help='Templates directory')
    html.add_argument('--items-per-page', dest='items_per_page', type=int,
                      help='Number of items per index page')
    html.add_argument('--max-blocks', dest='max_blocks', type=int,
                      help='Maximum items in each related/recent/series list')
    html.add_argument('--workers', type=int, help='Number of render workers')
    html.add_argument('--minify', action='store_true', default=None,
                      help='Write minified copies of CSS and JS assets')

    init = subparsers.add_parser('init', help='Create a sample configuration file')
    init.add_argument('format', nargs='?', choices=['yml', 'yaml', 'json'], default='yml')
    return parser


def build_service(repo, settings, logger):
    params = ParamManager(repo, settings, logger=logger.getChild('params'))
    sites_base_path = os.path.expanduser(params.get(ParamKey.SITES_BASE_PATH, settings['sites_base_path']))
    generator = Generator(sites_base_path, logger=logger.getChild('generator'))
    templates = TemplateManager(settings.get('templates'), logger=logger.getChild('templates'))
    renderer = HTMLRenderer(
        templates,
        sites_base_path,
        max_blocks=settings['max_blocks'],
        items_per_page=settings['items_per_page'],
        workers=settings['workers'],
        logger=logger.getChild('renderer'),
    )
    assets = AssetPublisher(sites_base_path, minify=bool(settings['minify']), logger=logger.getChild('assets'))
    return SiteService(repo, generator, renderer, params, assets=assets, logger=logger.getChild('service'))


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.command == 'init':
        settings_loader = ClioSettings()
        config_path = settings_loader.create_sample_config(args.format)
        print(f"Created sample configuration file: {config_path}")
        return 0

    logger = setup_logging()
    start_time = time.time()
    try:
        settings_loader = ClioSettings(args.config_dir, logger=logger.getChild('settings'))
        settings_loader.load_settings()
        args_dict = {k: v for k, v in vars(args).items() if k not in ('command', 'config_dir', 'snapshot', 'site')}
        settings = settings_loader.merge_with_args(args_dict)

        repo = SnapshotRepo.load(args.snapshot, logger=logger.getChild('snapshot'))
        site_slug = args.site or (repo.site.slug if repo.site else None)
        service = build_service(repo, settings, logger)
        ctx = SiteContext(site_slug=site_slug)

        if args.command == 'markdown':
            written = service.generate_markdown(ctx)
        else:
            written = service.generate_html(ctx)
    except ClioError as e:
        logger.error(f"Error: {e}")
        return 1
    except (IOError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info(f"Finished in {time.time() - start_time:.6f} seconds ({len(written)} files).")
    return 0


if __name__ == '__main__':
    sys.exit(main())
