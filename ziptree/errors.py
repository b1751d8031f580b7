"""Error type shared by the packer and unpacker."""

from __future__ import annotations


class ArchiveError(RuntimeError):
    """Raised for any pack/unpack failure.

    There are no error codes; the message says what went wrong and the
    underlying library exception, when there is one, is chained as
    ``__cause__``.
    """
