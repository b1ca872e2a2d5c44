# -*- coding: utf-8 -*-
"""
Exception hierarchy for camkeeper.

Anything derived from FatalError aborts the current run. The next scheduled
run starts again from a clean slate.
"""


class CamKeeperError(Exception):
    """Base class for all camkeeper errors"""


class FatalError(CamKeeperError):
    """Abort the run and exit with status 1"""
    exit_code = 1


class ConfigError(FatalError):
    """Missing credential file, empty required setting, missing tool"""


class RemoteApiError(FatalError):
    """A remote API call failed even after re-authenticating once"""

    def __init__(self, message, response=None):
        super().__init__(message)
        self.response = response


class AuthError(RemoteApiError):
    """Login or token refresh was rejected"""


class ScheduleError(FatalError):
    """Sun times unavailable or the activation window makes no sense"""
