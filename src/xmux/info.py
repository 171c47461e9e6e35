""" Connect to an X display and report the connection information the
    server returned during setup, as JSON.
"""

import argparse
import dataclasses
import logging
import sys

from . import display
from . import errors
from . import json


description = 'Dump the connection setup information for an X display.'


def parse_command_line(arguments=None):

    parser = argparse.ArgumentParser(description=description)

    parser.add_argument('-d', '--display', default=None,
        help='Display to connect to; defaults to the DISPLAY environment variable.')
    parser.add_argument('-v', '--verbose', action='store_true',
        help='Enable debug logging.')

    return parser.parse_args(arguments)


def main(arguments=None):

    options = parse_command_line(arguments)

    if options.verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        client = display.open_display(options.display)
    except (errors.XmuxError, errors.TransportError) as e:
        sys.stderr.write('xmux-info: ' + str(e) + '\n')
        return 1

    with client:
        info = dataclasses.asdict(client.connection_info)

    sys.stdout.write(json.dumps(info).decode() + '\n')
    return 0


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
