# -*- coding: utf-8 -*-
"""
Operator alerts through a Discord webhook. Alerts are best effort: a failed
webhook post is logged and never affects the run.
"""

import logging
from datetime import datetime, timezone

import requests

logger = logging.getLogger(__name__)

RED = 16711680
YELLOW = 16776960
GREEN = 65280


class Notifier:

    def __init__(self, webhook_url="", user_id="", session=None):
        self.webhook_url = webhook_url
        self.user_id = user_id
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(config.discord_webhook_url, config.discord_user_id)

    def send(self, title, message, color=RED, mention_user=True):
        """
        Send an alert to Discord via webhook.
        Returns True when Discord accepted it.
        """
        if not self.webhook_url:
            return False

        content = ""
        if mention_user and self.user_id:
            content = f"<@{self.user_id}>"

        payload = {
            'content': content,
            'embeds': [{
                'title': title,
                'description': message,
                'color': color,
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'footer': {'text': 'camkeeper'},
            }],
        }
        try:
            resp = self.session.post(self.webhook_url, json=payload, timeout=10,
                                     headers={'User-Agent': 'camkeeper/1.0'})
            return resp.status_code == 204
        except requests.RequestException as e:
            logger.error(f"Failed to send Discord alert: {e}")
            return False

    def fatal(self, details):
        self.send("Stream controller failed", f"The run was aborted:\n\n```{details}```")

    def key_rotated(self):
        # Never put key material in a third-party message
        self.send(
            "Stream key changed",
            "The video platform rotated the stream key. The local streaming service has been updated.",
            color=YELLOW,
        )

    def bounced(self, reason):
        self.send("Stream bounced", reason, color=YELLOW, mention_user=False)
