"""Error kinds raised by the asset readers.

Content-level problems in OBJ/MTL text (bad numbers, unknown directives,
missing material names) never raise; they degrade to defaults and are
logged. The exceptions below cover caller errors, missing resources and
binary buffers whose declared layout does not fit the data.
"""


class LoaderError(Exception):
    """Base class of all karalis loader errors."""


class InvalidParameterError(LoaderError, ValueError):
    """A required input is missing or has zero length."""


class EmptyInputError(LoaderError):
    """The input buffer yields no lines."""


class ResourceNotFoundError(LoaderError, KeyError):
    """The resource resolver does not know the requested path."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class FileOperationError(LoaderError):
    """A referenced resource (material library, texture) could not be read."""


class UnsupportedFormatError(LoaderError):
    """Magic, version or container type is not one this package reads."""


class MalformedInputError(LoaderError):
    """A header-declared offset or count points outside the buffer."""
