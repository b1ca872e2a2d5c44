# -*- coding: utf-8 -*-
"""
camkeeper entry point

Each invocation does one pass and exits: 0 when the run completed (including
"nothing to do"), 1 on a fatal error. The external scheduler runs it again
a few minutes later.
"""

import argparse
import logging
import os
import shutil
import sys

from .alerts import Notifier
from .clock import SystemClock
from .config import Config
from .credentials import load_nas_credentials
from .errors import ConfigError, FatalError
from .gateway import COOKIE_FILE, RemoteStateGateway
from .keepalive import KeepAlive
from .nas import SurveillanceClient
from .probes import NetworkProbe, RemoteHealthProbe, StreamDownloadProbe
from .reconciler import StateReconciler
from .schedule import compute_window, log_window
from .state import StateFiles
from .suntimes import SunTimesProvider

logger = logging.getLogger("camkeeper")

JOB_NAMES = {'control': 'Controller', 'keepalive': 'Keep Alive'}


def setup_logging(job, log_file="", debug=False):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a'))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=f'[%(asctime)s] [{JOB_NAMES.get(job, job)}] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
        force=True,
    )
    # Keep library chatter out of the debug log
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def build_stream_probe(config, gateway):
    if config.stream_probe == "download":
        return StreamDownloadProbe(config.probe_tool, config.youtube_url, config.probe_tool_timeout)
    return RemoteHealthProbe(gateway, config.tolerate_bad_health)


def build_network_probe(config):
    return NetworkProbe(config.test_site, config.network_timeout, config.network_method, config.network_port)


# ==============================================================================
#  JOBS
# ==============================================================================

def run_control(config, clock, notifier=None):
    config.validate()
    state = StateFiles(config)

    sunrise, sunset = SunTimesProvider(config, state, clock).get()
    window = compute_window(
        sunrise, sunset,
        config.start_offset_minutes, config.stop_offset_minutes,
        config.max_segment_seconds, config.grace_period_seconds,
        config.midday_split,
    )
    log_window(window, clock.seconds_since_midnight())

    gateway = RemoteStateGateway.from_config(config)
    reconciler = StateReconciler(
        config, gateway, clock, state,
        network_probe=build_network_probe(config),
        stream_probe=build_stream_probe(config, gateway),
        notifier=notifier,
    )
    return reconciler.run(window)


def run_keepalive(config, clock):
    if not config.nas_url:
        raise ConfigError("NAS_API_URL is not set")
    if not config.youtube_url:
        raise ConfigError("CAMKEEPER_YOUTUBE_URL is not set")
    if shutil.which(config.probe_tool) is None and not os.path.exists(config.probe_tool):
        raise ConfigError(f"Missing file {config.probe_tool}")

    username, password = load_nas_credentials(config)
    nas = SurveillanceClient(config.nas_url, username, password, config.path(COOKIE_FILE))
    probe = StreamDownloadProbe(config.probe_tool, config.youtube_url, config.probe_tool_timeout)
    return KeepAlive(config, nas, clock, probe).run()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='camkeeper', description=__doc__.strip().splitlines()[0])
    parser.add_argument('job', nargs='?', default='control', choices=sorted(JOB_NAMES),
                        help="control (default) reconciles the stream; keepalive pulls a few seconds of it")
    parser.add_argument('--debug', action='store_true', help="log routine detail as well as actions")
    parser.add_argument('--log-file', default=None, help="also append the log to this file")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = Config.from_env()
    setup_logging(args.job, args.log_file if args.log_file is not None else config.log_file, args.debug)
    notifier = Notifier.from_config(config)
    clock = SystemClock()

    logger.debug(f"Script {JOB_NAMES[args.job]} starting in {os.getcwd()}, state in {config.state_dir}")

    try:
        if args.job == 'keepalive':
            return 0 if run_keepalive(config, clock) else 1
        run_control(config, clock, notifier)
    except FatalError as e:
        logger.error(f"{e}. Exiting program")
        notifier.fatal(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 1
    return 0
