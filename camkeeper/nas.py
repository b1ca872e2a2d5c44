# -*- coding: utf-8 -*-
"""
Client for the NAS streaming service (Synology Surveillance Station
"YoutubeLive" feature) over the DSM web API.

Authentication is a session cookie kept in a cookie jar file. Every call
gets one re-authenticate-and-retry; a second failure raises RemoteApiError.
"""

import json
import logging
import os
from dataclasses import dataclass
from http.cookiejar import LoadError, LWPCookieJar

import requests

from .errors import AuthError, RemoteApiError

logger = logging.getLogger(__name__)

LIVE_API = "SYNO.SurveillanceStation.YoutubeLive"


@dataclass
class NasStreamState:
    live_on: bool
    key: str


def _succeeded(data):
    return isinstance(data, dict) and data.get('success') is True


class SurveillanceClient:

    def __init__(self, base_url, username, password, cookie_file, session=None, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.username = username
        self.password = password
        self.cookie_file = cookie_file
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.cookies = self._load_cookies()

    def _load_cookies(self):
        jar = LWPCookieJar(self.cookie_file)
        if os.path.exists(self.cookie_file):
            try:
                jar.load(ignore_discard=True, ignore_expires=True)
            except (LoadError, OSError) as e:
                logger.warning(f"Could not load cookie file {self.cookie_file}: {e}")
        return jar

    def _save_cookies(self):
        try:
            self.session.cookies.save(ignore_discard=True, ignore_expires=True)
        except OSError as e:
            logger.warning(f"Could not save cookie file {self.cookie_file}: {e}")

    def _get(self, endpoint, params):
        """One GET, decoded. None when the request or the decode fails."""
        url = f"{self.base_url}/{endpoint}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            data = resp.json()
        except requests.RequestException as e:
            logger.debug(f"Request to {url} failed: {e}")
            return None
        except ValueError:
            logger.debug(f"Response from {url} was not JSON: {resp.text[:200]}")
            return None
        logger.debug(f"Response: {data}")
        return data

    # ==========================================================================
    #  AUTHENTICATION
    # ==========================================================================

    def _detect_dsm_version(self):
        info = {'api': 'SYNO.API.Info', 'version': '1', 'method': 'query', 'query': 'SYNO.API.Auth'}
        version = None
        logger.debug(f"Querying {self.base_url} to see if it is DSM 6.x or earlier")
        if _succeeded(self._get('query.cgi', info)):
            version = 6
        logger.debug(f"Querying {self.base_url} to see if it is DSM 7.x or later")
        if _succeeded(self._get('entry.cgi', info)):
            version = 7
        if version is None:
            raise AuthError(f"Querying {self.base_url} for the DSM version did not succeed")
        logger.debug(f"DSM version appears to be {version}")
        return version

    def login(self):
        version = self._detect_dsm_version()
        if version == 6:
            endpoint, api_version = 'auth.cgi', '1'
        else:
            endpoint, api_version = 'entry.cgi', '3'

        params = {
            'api': 'SYNO.API.Auth',
            'version': api_version,
            'method': 'login',
            'account': self.username,
            'passwd': self.password,
            'session': 'SurveillanceStation',
            'format': 'cookie',
        }
        logger.debug(f"Attempting to authenticate to DSM version {version}")
        result = self._get(endpoint, params)
        if not _succeeded(result):
            raise AuthError(f"The call to authenticate with the NAS web API failed. Response: {result}", result)
        self._save_cookies()

    # ==========================================================================
    #  CALLS
    # ==========================================================================

    def call(self, endpoint, params):
        """Call the web API, re-authenticating once if the first attempt fails"""
        if not os.path.exists(self.cookie_file):
            logger.debug("Cookie file not present - authenticating")
            self.login()

        data = self._get(endpoint, params)
        if not _succeeded(data):
            logger.debug("The call to the NAS web API failed. Attempting to re-authenticate")
            self.login()
            data = self._get(endpoint, params)

        if not _succeeded(data):
            raise RemoteApiError(f"The call to the NAS web API failed. Response: {data}", data)
        return data

    def _live(self, method, **extra):
        params = {'api': LIVE_API, 'version': '1', 'method': method}
        params.update(extra)
        return self.call('entry.cgi', params)

    def load(self):
        data = self._live('Load').get('data') or {}
        return NasStreamState(live_on=data.get('live_on') is True, key=data.get('key') or "")

    def set_live(self, on):
        self._live('Save', live_on='true' if on else 'false')

    def set_key(self, key):
        self._live('Save', key=json.dumps(key))
