"""
Copies a site's static assets into its HTML tree, optionally minified.
"""

import logging
import os
import shutil

import csscompressor
import rjsmin

from .errors import WriteError
from .paths import ASSETS_DIR, site_assets_path, site_html_path


class AssetPublisher:
    def __init__(self, sites_base_path, minify=False, logger=None):
        self.sites_base_path = sites_base_path
        self.minify = minify
        self.logger = logger or logging.getLogger('clio.assets')

    def copy_assets(self, site_slug):
        """Copy `{assets}` to `{html}/assets`. Returns the destination or None."""
        source = site_assets_path(self.sites_base_path, site_slug)
        if not os.path.isdir(source):
            self.logger.debug(f"No assets directory for site {site_slug}: {source}")
            return None

        dest = os.path.join(site_html_path(self.sites_base_path, site_slug), ASSETS_DIR)
        try:
            if os.path.exists(dest):
                shutil.rmtree(dest)
            shutil.copytree(source, dest)
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to copy assets from {source}: {e}")
            raise WriteError(f"Failed to copy assets from {source}: {e}", site_slug=site_slug) from e
        self.logger.info(f"Copied assets from {source}")

        if self.minify:
            self.minify_assets(dest, site_slug)
        return dest

    def minify_assets(self, assets_dir, site_slug=None):
        """Write .min.css and .min.js next to every CSS and JS file."""
        minifiers = {'.css': csscompressor.compress, '.js': rjsmin.jsmin}
        for dirpath, _, filenames in os.walk(assets_dir):
            for name in sorted(filenames):
                stem, ext = os.path.splitext(name)
                if ext not in minifiers or stem.endswith('.min'):
                    continue
                path = os.path.join(dirpath, name)
                minified_path = os.path.join(dirpath, f"{stem}.min{ext}")
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        source = f.read()
                    with open(minified_path, 'w', encoding='utf-8') as f:
                        f.write(minifiers[ext](source))
                except (IOError, OSError, PermissionError) as e:
                    self.logger.error(f"Failed to minify {path}: {e}")
                    raise WriteError(f"Failed to minify {path}: {e}", site_slug=site_slug) from e
                self.logger.debug(f"Minified: {name}")
