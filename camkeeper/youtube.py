# -*- coding: utf-8 -*-
"""
YouTube Data API client for the live broadcast and its bound stream.

The refresh token is exchanged for an access token once per run. A failing
call refreshes the access token and retries once; a second failure raises
RemoteApiError.
"""

import logging
from dataclasses import dataclass, field

import requests

from .errors import AuthError, RemoteApiError

logger = logging.getLogger(__name__)

TOKEN_URL = 'https://oauth2.googleapis.com/token'
API_ROOT = 'https://www.googleapis.com/youtube/v3'


@dataclass
class BroadcastState:
    broadcast_id: str
    title: str
    visibility: str
    bound_stream_id: str
    life_cycle_status: str = ""
    created_at: str = ""
    secret_key: str = ""

    @property
    def is_live(self):
        return self.life_cycle_status == 'live'

    @classmethod
    def from_resource(cls, item):
        snippet = item.get('snippet', {})
        return cls(
            broadcast_id=item.get('id', ''),
            title=snippet.get('title', ''),
            visibility=item.get('status', {}).get('privacyStatus', ''),
            bound_stream_id=item.get('contentDetails', {}).get('boundStreamId', ''),
            life_cycle_status=item.get('status', {}).get('lifeCycleStatus', ''),
            created_at=snippet.get('publishedAt', ''),
        )


@dataclass
class StreamHealth:
    stream_status: str
    health_status: str
    issues: list = field(default_factory=list)

    @classmethod
    def from_resource(cls, item):
        status = item.get('status', {})
        health = status.get('healthStatus', {})
        return cls(
            stream_status=status.get('streamStatus', ''),
            health_status=health.get('status', ''),
            issues=[issue.get('type', '') for issue in health.get('configurationIssues', [])],
        )


def describe_error(resp):
    """Short description of an API error response"""
    try:
        error = resp.json().get('error', {})
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    if isinstance(error, str):
        return f"HTTP {resp.status_code}: {error}"
    message = error.get('message', '')
    reasons = [e.get('reason', '') for e in error.get('errors', [])]
    return f"HTTP {resp.status_code}: {message} {reasons}".strip()


class YouTubeClient:

    def __init__(self, client_id, client_secret, refresh_token, session=None, timeout=20):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.access_token = None

    # ==========================================================================
    #  AUTHENTICATION
    # ==========================================================================

    def refresh_access_token(self):
        """Get a fresh access token using the refresh token"""
        data = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'refresh_token': self.refresh_token,
            'grant_type': 'refresh_token',
        }
        try:
            resp = self.session.post(TOKEN_URL, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise AuthError(f"Failed to get access token: {e}")

        if resp.status_code != 200:
            body = resp.text
            if 'invalid_grant' in body:
                raise AuthError("YouTube API: Refresh token EXPIRED or revoked, it must be regenerated", body)
            if 'invalid_client' in body:
                raise AuthError("YouTube API: Invalid client credentials, check the client secrets file", body)
            raise AuthError(f"YouTube API: token refresh failed with HTTP {resp.status_code}", body)

        try:
            token = resp.json().get('access_token')
        except ValueError:
            token = None
        if not token:
            raise AuthError("The access token came up empty. Error accessing YouTube API", resp.text)

        logger.debug("Access Token retrieved")
        self.access_token = token
        return token

    # ==========================================================================
    #  CALLS
    # ==========================================================================

    def call(self, endpoint, params=None, method='GET', body=None):
        """
        Call the API, refreshing the access token and retrying once on failure.
        A POST is only retried when it was refused for authorization; any
        other failure may have created the resource already.
        """
        url = f"{API_ROOT}/{endpoint}"
        error = ""

        for attempt in (1, 2):
            refused = False
            if not self.access_token:
                self.refresh_access_token()
            headers = {'Authorization': f'Bearer {self.access_token}'}
            try:
                resp = self.session.request(method, url, params=params, json=body,
                                            headers=headers, timeout=self.timeout)
            except requests.RequestException as e:
                error = str(e)
            else:
                if resp.ok:
                    try:
                        return resp.json() if resp.content else {}
                    except ValueError:
                        error = f"Invalid JSON: {resp.text[:200]}"
                else:
                    error = describe_error(resp)
                    refused = resp.status_code in (401, 403)
                    if resp.status_code == 403 and 'insufficientPermissions' in resp.text:
                        logger.error("YouTube API: Insufficient scope! Regenerate token with full youtube scope.")

            if attempt == 1:
                if method == 'POST' and not refused:
                    break
                logger.debug(f"YouTube API {method} {endpoint} failed ({error}). Refreshing access token and retrying")
                self.access_token = None

        raise RemoteApiError(f"YouTube API {method} {endpoint} failed: {error}")

    # ==========================================================================
    #  BROADCASTS AND STREAMS
    # ==========================================================================

    def find_broadcast(self):
        """The active broadcast, or failing that the next upcoming one"""
        for status in ('active', 'upcoming'):
            result = self.call('liveBroadcasts', {
                'part': 'id,snippet,contentDetails,status',
                'broadcastStatus': status,
                'broadcastType': 'all',
            })
            items = result.get('items') or []
            if items:
                return BroadcastState.from_resource(items[0])
        return None

    def get_stream(self, stream_id):
        result = self.call('liveStreams', {'part': 'id,cdn,status', 'id': stream_id})
        items = result.get('items') or []
        return items[0] if items else None

    def get_stream_key(self, stream_id):
        stream = self.get_stream(stream_id)
        if not stream:
            return ""
        return stream.get('cdn', {}).get('ingestionInfo', {}).get('streamName', '')

    def get_stream_health(self, stream_id):
        stream = self.get_stream(stream_id)
        if not stream:
            return None
        return StreamHealth.from_resource(stream)

    def update_visibility(self, broadcast_id, privacy):
        """Only the status part is sent; snippet fields of a live broadcast are left alone"""
        result = self.call('liveBroadcasts', {'part': 'status'}, method='PUT', body={
            'id': broadcast_id,
            'status': {'privacyStatus': privacy},
        })
        new_privacy = result.get('status', {}).get('privacyStatus')
        logger.info(f"Broadcast visibility updated to: {new_privacy}")
        return new_privacy

    def create_broadcast(self, title, privacy, scheduled_start):
        result = self.call('liveBroadcasts', {'part': 'snippet,status,contentDetails'}, method='POST', body={
            'snippet': {'title': title, 'scheduledStartTime': scheduled_start},
            'status': {'privacyStatus': privacy},
            'contentDetails': {'enableAutoStart': True, 'enableAutoStop': True},
        })
        broadcast_id = result.get('id')
        if not broadcast_id:
            raise RemoteApiError(f"No id in the new live broadcast: {result}", result)
        return broadcast_id

    def create_stream(self, title):
        """Returns (stream_id, stream_key)"""
        result = self.call('liveStreams', {'part': 'snippet,cdn,status'}, method='POST', body={
            'snippet': {'title': title},
            'cdn': {'frameRate': 'variable', 'ingestionType': 'rtmp', 'resolution': 'variable'},
        })
        stream_id = result.get('id')
        key = result.get('cdn', {}).get('ingestionInfo', {}).get('streamName')
        if not stream_id or not key:
            raise RemoteApiError(f"Missing id or stream key in the new live stream: {result}", result)
        return stream_id, key

    def bind(self, broadcast_id, stream_id):
        result = self.call('liveBroadcasts/bind', {
            'part': 'id,status,contentDetails',
            'id': broadcast_id,
            'streamId': stream_id,
        }, method='POST')
        return result.get('status', {}).get('lifeCycleStatus', '')
