# -*- coding: utf-8 -*-
"""Loading of the credential files the jobs depend on"""

import json
import logging
import os

from .errors import ConfigError

logger = logging.getLogger(__name__)


def _read_text(path):
    if not os.path.exists(path):
        raise ConfigError(f"Missing file {path}")
    with open(path, 'r') as f:
        return f.read()


def load_client_secrets(path):
    """client_id and client_secret from a Google OAuth client JSON file"""
    try:
        data = json.loads(_read_text(path))
    except ValueError as e:
        raise ConfigError(f"Error parsing json file {path}: {e}")

    section = data.get('installed') or data.get('web') or data
    client_id = section.get('client_id', '')
    client_secret = section.get('client_secret', '')
    if not client_id:
        raise ConfigError(f"client_id came up empty in {path}")
    if not client_secret:
        raise ConfigError(f"client_secret came up empty in {path}")
    return client_id, client_secret


def load_refresh_token(path):
    token = _read_text(path).strip()
    if not token:
        raise ConfigError(f"Refresh token came up empty in {path}")
    return token


def load_nas_credentials(config):
    """
    Username and password for the NAS web API. Environment variables win;
    otherwise the credentials file holds "username password" on one line.
    """
    if config.nas_username and config.nas_password:
        return config.nas_username, config.nas_password

    path = config.path(config.nas_credentials_file)
    parts = _read_text(path).split()
    if len(parts) < 2:
        raise ConfigError(f"Problem obtaining API credentials from {path}")
    return parts[0], parts[1]
