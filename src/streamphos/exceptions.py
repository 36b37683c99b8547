"""
Exceptions raised while loading and reshaping sampling tables.
"""
from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional, Union


class StreamPhosError(Exception):
    """Base exception for streamphos errors."""

    pass


class MissingFileError(StreamPhosError, FileNotFoundError):
    """Input file does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Input file not found: {self.path}")


class ParseError(StreamPhosError, ValueError):
    """A numeric column holds a token that is neither a number nor a configured sentinel."""

    def __init__(self, path, column: str, row: Optional[int] = None, token: object = None):
        self.path = path
        self.column = column
        self.row = row
        self.token = token
        where = f"{path}" if path is not None else "<frame>"
        at_row = f", row {row}" if row is not None else ""
        super().__init__(f"Cannot parse {token!r} in column '{column}' of {where}{at_row}")


class SchemaError(StreamPhosError, KeyError):
    """Expected columns are absent or hold values outside their allowed set."""

    def __init__(self, columns: Iterable[str], source: object = None, detail: str = ""):
        self.columns = list(columns)
        self.source = source
        where = f" in {source}" if source is not None else ""
        msg = f"Schema mismatch{where}: {self.columns}"
        if detail:
            msg += f" ({detail})"
        self.message = msg
        super().__init__(msg)

    def __str__(self) -> str:
        return self.message
