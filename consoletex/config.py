# config.py
import configparser
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "CONSOLETEX_CONFIG"

DEFAULTS = {
    'log_level': 'WARNING',
    'gim_swizzle': True,
    'gim_user': '',
    'gim_program': 'consoletex',
    'svr_global_index': None,
}


def _config_path(path):
    if path is not None:
        return Path(path)
    if os.environ.get(ENV_CONFIG_PATH):
        return Path(os.environ[ENV_CONFIG_PATH])
    return Path(__file__).parent / 'config.ini'


def load_config(path=None):
    """
    Load settings from an INI file, falling back to DEFAULTS.

    The file is taken from path, the CONSOLETEX_CONFIG environment variable,
    or config.ini next to the package, in that order.
    """
    config_path = _config_path(path)
    if not config_path.exists():
        return dict(DEFAULTS)

    config = configparser.ConfigParser()
    result = dict(DEFAULTS)
    try:
        config.read(config_path)

        if config.has_option('Logging', 'level'):
            result['log_level'] = config.get('Logging', 'level').strip().upper()

        if config.has_section('Gim'):
            if config.has_option('Gim', 'swizzle'):
                result['gim_swizzle'] = config.getboolean('Gim', 'swizzle')
            if config.has_option('Gim', 'user'):
                result['gim_user'] = config.get('Gim', 'user')
            if config.has_option('Gim', 'program'):
                result['gim_program'] = config.get('Gim', 'program')

        if config.has_option('Svr', 'global_index'):
            value = config.get('Svr', 'global_index').strip()
            result['svr_global_index'] = int(value, 0) if value else None

    except (configparser.Error, ValueError) as e:
        logger.warning("Error reading %s: %s, using defaults", config_path, e)
        return dict(DEFAULTS)

    return result


def configure_logging(level=None, config=None):
    """Send library log records to stderr; for tools embedding the codecs."""
    if level is None:
        level = (config or load_config())['log_level']
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')
    logging.getLogger('consoletex').setLevel(level)
