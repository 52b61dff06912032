import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

# Default configuration; config.yaml overrides any of these keys
DEFAULT_CONFIG = {
    'storage': {
        'backend': 'sql',            # memory | sql | platform
        'database_url': None,        # None -> sqlite file in the project root
    },
    'platform': {
        'base_url': None,
        'project_id': None,
        'public_key': None,
        'timeout': 30.0,
        'tables': {
            'projects': 'project_c',
            'assets': 'asset_c',
            'milestones': 'milestone_c',
        },
    },
    'openai': {
        'base_url': 'https://api.openai.com/v1',
        'timeout': 60.0,
    },
    'clipdrop': {
        'url': 'https://clipdrop-api.co/text-to-image/v1',
        'timeout': 60.0,
    },
    'image_generation': {
        'storage_mode': 'best_effort',  # disabled | best_effort | required
    },
    'streaming': {
        'max_bytes': 100 * 1024 * 1024,
        'timeout': 120.0,
        'allowed_hosts': [],         # empty: /ai/stream-file refuses every URL
    },
    'ai': {
        'rate_limit': '20/minute',
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    },
    'cors': {
        'allowed_origins': ['http://localhost:3000', 'http://localhost:5173', 'http://localhost:8000'],
    },
}

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    'VFXHUB_STORAGE_BACKEND': ('storage', 'backend'),
    'DATABASE_URL': ('storage', 'database_url'),
    'APPER_BASE_URL': ('platform', 'base_url'),
    'APPER_PROJECT_ID': ('platform', 'project_id'),
    'APPER_PUBLIC_KEY': ('platform', 'public_key'),
    'VFXHUB_IMAGE_STORAGE_MODE': ('image_generation', 'storage_mode'),
    'VFXHUB_AI_RATE_LIMIT': ('ai', 'rate_limit'),
    'LOG_LEVEL': ('logging', 'level'),
}

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class Config:
    _instance = None
    _config = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self):
        """Load configuration from config.yaml or fall back to defaults."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        config_path = os.getenv('VFXHUB_CONFIG', os.path.join(PROJECT_ROOT, 'config.yaml'))

        if os.path.exists(config_path):
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    user_config = yaml.safe_load(f)
                    if user_config:
                        self._merge_config(self._config, user_config)
                logger.info(f"Loaded configuration from {config_path}")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to load {config_path}: {e}. Using defaults.")
        else:
            logger.info("config.yaml not found. Using default configuration.")

        self._apply_env_overrides()

    def _apply_env_overrides(self):
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                self._config[section][key] = value

        origins = os.getenv('ALLOWED_ORIGINS')
        if origins:
            self._config['cors']['allowed_origins'] = [o.strip() for o in origins.split(',') if o.strip()]

        hosts = os.getenv('VFXHUB_STREAM_ALLOWED_HOSTS')
        if hosts:
            self._config['streaming']['allowed_hosts'] = [h.strip() for h in hosts.split(',') if h.strip()]

    def _merge_config(self, default, user):
        """Recursively merge dictionary user_config into default_config."""
        for key, value in user.items():
            if isinstance(value, dict) and key in default and isinstance(default[key], dict):
                self._merge_config(default[key], value)
            else:
                default[key] = value

    def reload(self):
        """Re-read config.yaml and the environment (used by tests)."""
        self._load_config()

    def get(self, section, key=None, default=None):
        """
        Get a configuration value.
        Usage: config.get('openai', 'timeout') or config.get('openai')
        """
        if section not in self._config:
            return default

        if key is None:
            return self._config[section]

        return self._config[section].get(key, default)

    def set(self, section, key, value):
        self._config.setdefault(section, {})[key] = value


def get_secret(name):
    """Resolve a provider credential at call time. Returns None when unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


# Global accessor
config = Config()
