"""Exceptions raised by import-sorter."""


class ImportSorterError(Exception):
    """Base class for all import-sorter errors."""


class ConfigInvalidError(ImportSorterError, ValueError):
    """A configuration layer is malformed (bad pattern, field or value)."""


class ParseUnsupportedError(ImportSorterError):
    """The import block uses a construct the sorter cannot handle.

    Callers treat this as "leave the file unchanged".
    """


class HardConflictError(ImportSorterError):
    """Two imports of the same module cannot be merged without losing a binding."""

    def __init__(self, specifier: str, message: str) -> None:
        super().__init__(f"{specifier!r}: {message}")
        self.specifier = specifier
