"""Self-healing scheduler and watchdog for an unattended outdoor live stream."""

__version__ = "1.0.0"
