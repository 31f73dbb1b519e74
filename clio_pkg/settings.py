#!/usr/bin/env python3
"""
Settings loader for Clio.
Supports configuration from clio.yml, clio.yaml, or clio.json files.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

# Parameter reference keys, resolved from the site store first, then settings
class ParamKey:
    SITES_BASE_PATH = 'ssg.sites.base.path'
    PUBLISH_REPO_URL = 'ssg.publish.repo.url'
    PUBLISH_BRANCH = 'ssg.publish.branch'
    PUBLISH_AUTH_TOKEN = 'ssg.publish.auth.token'
    PUBLISH_COMMIT_USER_NAME = 'ssg.publish.commit.user.name'
    PUBLISH_COMMIT_USER_EMAIL = 'ssg.publish.commit.user.email'
    PUBLISH_COMMIT_MESSAGE = 'ssg.publish.commit.message'


class ClioSettings:
    """Load and manage Clio configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'sites_base_path': '_workspace/sites',
        'templates': None,
        'items_per_page': 10,
        'max_blocks': 5,
        'workers': 1,
        'minify': False,
        'publish': {
            'repo_url': '',
            'branch': 'gh-pages',
            'auth_token': '',
            'commit_user_name': '',
            'commit_user_email': '',
            'commit_message': 'Publish site',
        },
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['clio.yml', 'clio.yaml', 'clio.json']

    def __init__(self, config_dir: str = None, logger=None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
            logger: Logger to report on; defaults to the `clio.settings` logger.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = json.loads(json.dumps(self.DEFAULT_SETTINGS))
        self.config_file_path = None
        self.logger = logger or logging.getLogger('clio.settings')

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if loaded_settings:
                publish = loaded_settings.pop('publish', None) or {}
                self.settings.update(loaded_settings)
                self.settings['publish'].update(publish)
                self.logger.info(f"Loaded configuration from: {os.path.relpath(config_file)}")

        return dict(self.settings)

    def _find_config_file(self) -> Optional[str]:
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Raises:
            ValueError: for malformed YAML or JSON, or an unknown extension
            IOError: when the file cannot be read
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    data = yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    data = json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise IOError(f"Error reading configuration file {config_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        return data

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        filename = f'clio.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Clio Configuration File\n\n")
                    f.write("# Where site workspaces live: {sites_base_path}/{slug}/documents/...\n")
                    f.write("sites_base_path: _workspace/sites\n\n")
                    f.write("# Template directory (defaults to the packaged templates)\n")
                    f.write("# templates: templates\n\n")
                    f.write("# Rendering\n")
                    f.write("items_per_page: 10\n")
                    f.write("max_blocks: 5  # related/recent/series list size\n")
                    f.write("workers: 1\n")
                    f.write("minify: false\n\n")
                    f.write("# Publishing defaults\n")
                    f.write("publish:\n")
                    f.write("  repo_url: ''\n")
                    f.write("  branch: gh-pages\n")
                    f.write("  commit_user_name: ''\n")
                    f.write("  commit_user_email: ''\n")
                    f.write("  commit_message: Publish site\n")
                elif file_format == 'json':
                    json.dump(self.DEFAULT_SETTINGS, f, indent=2)
                else:
                    raise ValueError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.
        """
        merged = dict(self.settings)
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value
        return merged


class ParamManager:
    """Resolves a parameter from the site store, falling back to settings."""

    # settings lookup path for each param key
    SETTINGS_PATHS = {
        ParamKey.SITES_BASE_PATH: ('sites_base_path',),
        ParamKey.PUBLISH_REPO_URL: ('publish', 'repo_url'),
        ParamKey.PUBLISH_BRANCH: ('publish', 'branch'),
        ParamKey.PUBLISH_AUTH_TOKEN: ('publish', 'auth_token'),
        ParamKey.PUBLISH_COMMIT_USER_NAME: ('publish', 'commit_user_name'),
        ParamKey.PUBLISH_COMMIT_USER_EMAIL: ('publish', 'commit_user_email'),
        ParamKey.PUBLISH_COMMIT_MESSAGE: ('publish', 'commit_message'),
    }

    def __init__(self, repo, settings: Optional[Dict[str, Any]] = None, logger=None):
        self.repo = repo
        self.settings = settings or {}
        self.logger = logger or logging.getLogger('clio.params')

    def find_param_by_ref(self, ref_key: str):
        return self.repo.get_param_by_ref_key(ref_key)

    def get(self, ref_key: str, default: str = '') -> str:
        value = None
        if self.repo is not None:
            value = self.find_param_by_ref(ref_key)
        if value:
            return value
        return self._from_settings(ref_key, default)

    def _from_settings(self, ref_key, default):
        node = self.settings
        for part in self.SETTINGS_PATHS.get(ref_key, (ref_key,)):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        if node is None or node == '':
            return default
        return node
