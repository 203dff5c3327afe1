# What it does: Manages all read/write operations for the `.nit/config` file
# What data structure it uses: Map / Hash Table / Dictionary (the INI file format is a map of sections to key-value pairs, managed by Python's `configparser`)

import configparser
import os

from .errors import InvalidArgument
from .repository import repo_path

AUTHOR_NAME_ENV = 'NIT_AUTHOR_NAME'
AUTHOR_EMAIL_ENV = 'NIT_AUTHOR_EMAIL'


def get_config_path(repo_root):  # Returns the path to the config file within the repository
    return repo_path(repo_root, 'config')


def read_config(repo_root): # Reads and returns the configuration as a ConfigParser object
    config = configparser.ConfigParser()
    config_path = get_config_path(repo_root)
    if os.path.exists(config_path):
        config.read(config_path)
    return config


def write_config(repo_root, key, value): # Sets a configuration key to a value and writes it to the config file
    try:
        section, option = key.split('.', 1)
    except ValueError:
        raise InvalidArgument("invalid key format, should be 'section.key'") from None
    if not section or not option:
        raise InvalidArgument("invalid key format, should be 'section.key'")

    config = read_config(repo_root)
    if not config.has_section(section):
        config.add_section(section)
    config.set(section, option, value)

    with open(get_config_path(repo_root), 'w') as configfile:
        config.write(configfile)


def get_user_config(repo_root): # Retrieves user.name and user.email; the environment wins over the config file
    config = read_config(repo_root)
    user_name = os.environ.get(AUTHOR_NAME_ENV) or config.get('user', 'name', fallback=None)
    user_email = os.environ.get(AUTHOR_EMAIL_ENV) or config.get('user', 'email', fallback=None)
    return user_name, user_email
