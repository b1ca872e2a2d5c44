# -*- coding: utf-8 -*-
"""
One typed facade over the two remote services the controller reconciles:
the NAS streaming service (on/off, local stream key) and the video
platform (broadcast, bound stream, visibility).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .credentials import load_client_secrets, load_nas_credentials, load_refresh_token
from .nas import SurveillanceClient
from .youtube import YouTubeClient

logger = logging.getLogger(__name__)

COOKIE_FILE = "camkeeper-cookies"


@dataclass
class NewBroadcast:
    broadcast_id: str
    stream_id: str
    stream_key: str
    life_cycle_status: str


class RemoteStateGateway:

    def __init__(self, nas, youtube):
        self.nas = nas
        self.youtube = youtube

    @classmethod
    def from_config(cls, config):
        username, password = load_nas_credentials(config)
        client_id, client_secret = load_client_secrets(config.path(config.client_secrets_file))
        refresh_token = load_refresh_token(config.path(config.refresh_token_file))
        nas = SurveillanceClient(config.nas_url, username, password, config.path(COOKIE_FILE))
        youtube = YouTubeClient(client_id, client_secret, refresh_token)
        return cls(nas, youtube)

    # ==========================================================================
    #  NAS
    # ==========================================================================

    def is_live(self):
        live = self.nas.load().live_on
        logger.debug(f"Streaming feature is {'running' if live else 'stopped'}")
        return live

    def start(self):
        logger.debug("Starting stream")
        self.nas.set_live(True)

    def stop(self):
        logger.debug("Stopping stream")
        self.nas.set_live(False)

    def local_key(self):
        return self.nas.load().key

    def set_local_key(self, key):
        self.nas.set_key(key)

    # ==========================================================================
    #  VIDEO PLATFORM
    # ==========================================================================

    def fetch_broadcast(self):
        """Current broadcast with the secret key of its bound stream, or None"""
        broadcast = self.youtube.find_broadcast()
        if broadcast is None:
            return None
        if broadcast.bound_stream_id:
            broadcast.secret_key = self.youtube.get_stream_key(broadcast.bound_stream_id)
        logger.debug(
            f"Broadcast '{broadcast.title}' id {broadcast.broadcast_id} "
            f"privacy {broadcast.visibility} bound stream {broadcast.bound_stream_id}"
        )
        return broadcast

    def stream_health(self):
        broadcast = self.youtube.find_broadcast()
        if broadcast is None or not broadcast.bound_stream_id:
            return None
        return self.youtube.get_stream_health(broadcast.bound_stream_id)

    def set_visibility(self, broadcast_id, visibility):
        return self.youtube.update_visibility(broadcast_id, visibility)

    def create_new_broadcast(self, title, visibility):
        """Create a broadcast and a stream, and bind them together"""
        start = (datetime.now(timezone.utc) + timedelta(minutes=5)).strftime('%Y-%m-%dT%H:%M:%SZ')
        logger.info("Creating new YouTube Live Broadcast")
        broadcast_id = self.youtube.create_broadcast(title, visibility, start)

        logger.debug("Creating new YouTube Live Stream to bind to the Broadcast")
        stream_id, key = self.youtube.create_stream(title)

        logger.debug(f"Binding stream {stream_id} to the Broadcast Id: {broadcast_id}")
        status = self.youtube.bind(broadcast_id, stream_id)
        if status != 'ready':
            logger.error(f"Unexpected lifeCycleStatus after binding broadcast {broadcast_id}: {status}")

        return NewBroadcast(broadcast_id, stream_id, key, status)
