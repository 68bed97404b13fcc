"""Process exit codes used by the driftsql CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1  # query failures and anything unclassified
    USAGE_ERROR = 2  # unsupported capability for the configured driver
    INPUT_ERROR = 3  # empty CRUD input, bad identifiers, no SQL given
    OUTPUT_ERROR = 4  # generated types could not be written
    NETWORK_ERROR = 5  # backend unreachable
    TIMEOUT = 6
    CONFIG_ERROR = 7
