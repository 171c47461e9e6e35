"""ZeroMQ transport backend."""

from . import stream

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
