# -*- coding: utf-8 -*-
"""
camkeeper configuration

Every setting is read from the environment once, at startup, into a Config
object that is handed to each component. Nothing here is mutated after
from_env() returns.
"""

import os
from dataclasses import dataclass

from .errors import ConfigError

VISIBILITIES = ("public", "unlisted", "private")
SPLIT_MODES = ("recreate", "bounce")
NETWORK_METHODS = ("ping", "tcp")
STREAM_PROBES = ("api", "download")
SUN_SOURCES = ("sunrisesunset", "timeanddate")


def _env_bool(name, default):
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _env_int(name, default):
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class Config:
    # Files
    state_dir: str = "."
    client_secrets_file: str = "client_id.json"
    refresh_token_file: str = "camkeeper-tokens"
    nas_credentials_file: str = "api-creds"
    log_file: str = ""

    # Local streaming service (Synology Surveillance Station)
    nas_url: str = ""
    nas_username: str = ""
    nas_password: str = ""

    # Video platform
    expected_title: str = ""
    desired_visibility: str = "public"
    youtube_url: str = ""

    # Network probe
    test_site: str = "google.com"
    network_method: str = "ping"
    network_port: int = 443
    network_timeout: int = 15
    network_tests: int = 30
    network_test_interval: int = 10
    max_comeback_retries: int = 40

    # Stream probe
    stream_probe: str = "api"
    stream_tests: int = 4
    stream_test_interval: int = 15
    probe_tool: str = "youtube-dl"
    probe_tool_timeout: int = 60
    tolerate_bad_health: bool = False
    bounce_on_stream_down: bool = False

    # Bounces
    short_bounce_seconds: int = 4
    long_bounce_seconds: int = 135
    warmup_seconds: int = 50
    hourly_quick_bounce: bool = False
    top_of_hour_seconds: int = 300

    # Schedule
    start_offset_minutes: int = -20
    stop_offset_minutes: int = 20
    max_segment_seconds: int = 43200
    grace_period_seconds: int = 3600
    midday_split: bool = True
    split_mode: str = "recreate"
    sun_source: str = "sunrisesunset"
    location: str = ""
    latitude: str = ""
    longitude: str = ""
    sun_refresh_after: int = 50400
    sun_cache_max_age: int = 64800

    # Keep alive
    keepalive_seconds: int = 20
    keepalive_max_pause: int = 300

    # Alerts
    discord_webhook_url: str = ""
    discord_user_id: str = ""

    @classmethod
    def from_env(cls):
        """Build the configuration from environment variables"""
        return cls(
            state_dir=os.getenv("CAMKEEPER_STATE_DIR", "."),
            client_secrets_file=os.getenv("YOUTUBE_CLIENT_SECRETS", "client_id.json"),
            refresh_token_file=os.getenv("YOUTUBE_TOKENS_FILE", "camkeeper-tokens"),
            nas_credentials_file=os.getenv("NAS_CREDENTIALS_FILE", "api-creds"),
            log_file=os.getenv("CAMKEEPER_LOG_FILE", ""),
            nas_url=os.getenv("NAS_API_URL", ""),
            nas_username=os.getenv("NAS_USERNAME", ""),
            nas_password=os.getenv("NAS_PASSWORD", ""),
            expected_title=os.getenv("CAMKEEPER_TITLE", ""),
            desired_visibility=os.getenv("CAMKEEPER_VISIBILITY", "public").lower(),
            youtube_url=os.getenv("CAMKEEPER_YOUTUBE_URL", ""),
            test_site=os.getenv("CAMKEEPER_TEST_SITE", "google.com"),
            network_method=os.getenv("CAMKEEPER_NETWORK_METHOD", "ping").lower(),
            network_port=_env_int("CAMKEEPER_NETWORK_PORT", "443"),
            network_timeout=_env_int("CAMKEEPER_NETWORK_TIMEOUT", "15"),
            network_tests=_env_int("CAMKEEPER_NETWORK_TESTS", "30"),
            network_test_interval=_env_int("CAMKEEPER_NETWORK_TEST_INTERVAL", "10"),
            max_comeback_retries=_env_int("CAMKEEPER_MAX_COMEBACK_RETRIES", "40"),
            stream_probe=os.getenv("CAMKEEPER_STREAM_PROBE", "api").lower(),
            stream_tests=_env_int("CAMKEEPER_STREAM_TESTS", "4"),
            stream_test_interval=_env_int("CAMKEEPER_STREAM_TEST_INTERVAL", "15"),
            probe_tool=os.getenv("CAMKEEPER_PROBE_TOOL", "youtube-dl"),
            probe_tool_timeout=_env_int("CAMKEEPER_PROBE_TOOL_TIMEOUT", "60"),
            tolerate_bad_health=_env_bool("CAMKEEPER_TOLERATE_BAD_HEALTH", "false"),
            bounce_on_stream_down=_env_bool("CAMKEEPER_BOUNCE_ON_STREAM_DOWN", "false"),
            short_bounce_seconds=_env_int("CAMKEEPER_SHORT_BOUNCE", "4"),
            long_bounce_seconds=_env_int("CAMKEEPER_LONG_BOUNCE", "135"),
            warmup_seconds=_env_int("CAMKEEPER_WARMUP", "50"),
            hourly_quick_bounce=_env_bool("CAMKEEPER_HOURLY_BOUNCE", "false"),
            top_of_hour_seconds=_env_int("CAMKEEPER_TOP_OF_HOUR_PERIOD", "300"),
            start_offset_minutes=_env_int("CAMKEEPER_START_OFFSET", "-20"),
            stop_offset_minutes=_env_int("CAMKEEPER_STOP_OFFSET", "20"),
            max_segment_seconds=_env_int("CAMKEEPER_MAX_SEGMENT", "43200"),
            grace_period_seconds=_env_int("CAMKEEPER_GRACE_PERIOD", "3600"),
            midday_split=_env_bool("CAMKEEPER_MIDDAY_SPLIT", "true"),
            split_mode=os.getenv("CAMKEEPER_SPLIT_MODE", "recreate").lower(),
            sun_source=os.getenv("CAMKEEPER_SUN_SOURCE", "sunrisesunset").lower(),
            location=os.getenv("CAMKEEPER_LOCATION", ""),
            latitude=os.getenv("CAMKEEPER_LAT", ""),
            longitude=os.getenv("CAMKEEPER_LNG", ""),
            keepalive_seconds=_env_int("CAMKEEPER_KEEPALIVE_SECONDS", "20"),
            keepalive_max_pause=_env_int("CAMKEEPER_KEEPALIVE_MAX_PAUSE", "300"),
            discord_webhook_url=os.getenv("DISCORD_WEBHOOK_URL", ""),
            discord_user_id=os.getenv("DISCORD_USER_ID", ""),
        )

    def path(self, name):
        """Location of a persisted state file"""
        return os.path.join(self.state_dir, name)

    def validate(self):
        """Raise ConfigError for settings the control job cannot run without"""
        if not self.nas_url:
            raise ConfigError("NAS_API_URL is not set")
        if self.desired_visibility not in VISIBILITIES:
            raise ConfigError(f"CAMKEEPER_VISIBILITY must be one of {VISIBILITIES}")
        if self.split_mode not in SPLIT_MODES:
            raise ConfigError(f"CAMKEEPER_SPLIT_MODE must be one of {SPLIT_MODES}")
        if self.network_method not in NETWORK_METHODS:
            raise ConfigError(f"CAMKEEPER_NETWORK_METHOD must be one of {NETWORK_METHODS}")
        if self.stream_probe not in STREAM_PROBES:
            raise ConfigError(f"CAMKEEPER_STREAM_PROBE must be one of {STREAM_PROBES}")
        if self.sun_source not in SUN_SOURCES:
            raise ConfigError(f"CAMKEEPER_SUN_SOURCE must be one of {SUN_SOURCES}")
        if self.stream_probe == "download" and not self.youtube_url:
            raise ConfigError("CAMKEEPER_YOUTUBE_URL is required for the download stream probe")
        if self.network_tests < 1 or self.stream_tests < 1:
            raise ConfigError("Test counts must be at least 1")
        if self.short_bounce_seconds < 1:
            raise ConfigError("CAMKEEPER_SHORT_BOUNCE must be at least 1 second")
        for name in (self.client_secrets_file, self.refresh_token_file):
            if not os.path.exists(self.path(name)):
                raise ConfigError(f"Missing file {self.path(name)}")
