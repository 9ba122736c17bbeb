# host/errors.py


class HostError(RuntimeError):
    """An external action (command, file write, download) did not succeed."""
