from __future__ import annotations


class DunekeepError(Exception):
    """Base class for errors raised by the simulation package."""


class ConfigError(DunekeepError, ValueError):
    """A definition table (creeps, waves, towers, mines, maps) is malformed.

    Raised while loading, before any gameplay starts. The message names the
    table and the offending entry.
    """

    def __init__(self, table: str, msg: str):
        self.table = table
        super().__init__(f"{table}: {msg}")
