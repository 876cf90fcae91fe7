"""meshcheck exceptions"""


class HealthCheckError(Exception):
    """A check failed. The message is shown to the user as-is."""
