"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~clientforge.exceptions.ClientforgeError` subclass.
CI scripts and editor integrations running ``clientforge watch`` or
``clientforge validate`` can inspect the exit code to determine the failure
class without parsing stderr.

Example::

    $ clientforge validate --strict
    $ echo $?
    9   # EXIT_VALIDATION_ERROR -- the spec has structural issues
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid or conflicting arguments."""

EXIT_CONFIG_ERROR = 3
"""``api.config.toml`` is missing, unreadable, or has invalid values."""

EXIT_NETWORK_ERROR = 4
"""The OpenAPI spec could not be fetched (timeout, connection, HTTP status)."""

EXIT_SPEC_NOT_FOUND = 5
"""No local copy of the OpenAPI spec exists yet."""

EXIT_SPEC_PARSE_ERROR = 6
"""The OpenAPI spec could not be decoded as a JSON/YAML object."""

EXIT_GENERATION_ERROR = 7
"""Rendering the client modules failed."""

EXIT_OUTPUT_ERROR = 8
"""Writing generated files to the output directory failed."""

EXIT_VALIDATION_ERROR = 9
"""The spec validator reported errors (or warnings under ``--strict``)."""

EXIT_INTERRUPTED = 130
"""The command was cancelled with Ctrl-C (128 + SIGINT)."""
