"""txtar (text archive) parser.

A txtar archive is zero or more comment lines followed by a sequence of file
entries. Each entry starts with a marker line of the form ``-- NAME --`` and
runs until the next marker line or the end of the text. See
https://pkg.go.dev/golang.org/x/tools/txtar for the format description.

There are no syntax errors in a txtar archive: :func:`parse` accepts any string.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)

MARKER_START = "-- "
MARKER_END = " --"
# "-- --" is the shortest marker: prefix and suffix share the middle space.
MARKER_MIN_LENGTH = len(MARKER_START) + len(MARKER_END) - 1


class TxtarError(ValueError):
    """Base class for errors raised while assembling an archive."""


class InvalidFileNameError(TxtarError):
    """Raised when a file name cannot be written on a marker line."""


class MarkerInContentError(TxtarError):
    """Raised when a comment or file body contains a marker line."""


def _fix_trailing_newline(text: str) -> str:
    if text and not text.endswith("\n"):
        return text + "\n"
    return text


def _iter_lines(text: str) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` offsets of each line, ``end`` past its newline."""
    line_start = 0
    length = len(text)
    while line_start < length:
        newline = text.find("\n", line_start)
        line_end = length if newline == -1 else newline + 1
        yield line_start, line_end
        line_start = line_end


def marker_name(line: str) -> Optional[str]:
    """Return the file name if ``line`` is a marker line, otherwise ``None``.

    ``line`` may include its terminating newline, which is not part of the
    marker. ``"-- --"`` names a file with an empty name.
    """
    body = line[:-1] if line.endswith("\n") else line
    if len(body) < MARKER_MIN_LENGTH:
        return None
    if not (body.startswith(MARKER_START) and body.endswith(MARKER_END)):
        return None
    return body[len(MARKER_START) : len(body) - len(MARKER_END)].strip()


def _scan(source: str) -> Iterator[Tuple[Optional[str], str]]:
    """Yield ``(name, segment)`` pairs in source order.

    The first pair always carries the comment with a name of ``None``.
    """
    name: Optional[str] = None
    segment_start = 0

    for line_start, line_end in _iter_lines(source):
        found = marker_name(source[line_start:line_end])
        if found is not None:
            yield name, source[segment_start:line_start]
            name = found
            segment_start = line_end

    yield name, source[segment_start:]


@dataclass(frozen=True)
class File:
    """A single named file within an :class:`Archive`."""

    name: str
    content: str

    def __str__(self) -> str:
        return f"{MARKER_START}{self.name}{MARKER_END}\n{_fix_trailing_newline(self.content)}"


@dataclass(frozen=True)
class Archive:
    """A parsed txtar archive: a comment plus files in source order.

    Files keep their original order and duplicate names are retained. Lookup by
    name with :meth:`get` returns the first match only. Archives are immutable
    and hashable.
    """

    comment: str = ""
    files: Tuple[File, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", tuple(self.files))

    @classmethod
    def from_text(cls, text: str) -> "Archive":
        """Alternate constructor, equivalent to :func:`parse`."""
        return parse(text)

    def get(self, name: str) -> Optional[File]:
        """Get the first file with exactly this name.

        Args:
            name: The file name to look up (case-sensitive)

        Returns:
            The matching File, or None if no file has that name
        """
        for archived in self.files:
            if archived.name == name:
                return archived
        return None

    def names(self) -> List[str]:
        """Return the file names in archive order, duplicates included."""
        return [archived.name for archived in self.files]

    def iter(self) -> Iterator[File]:
        """Return a fresh iterator over the files in archive order."""
        return iter(self.files)

    def __iter__(self) -> Iterator[File]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __getitem__(self, index: int) -> File:
        try:
            return self.files[index]
        except IndexError:
            raise IndexError(
                f"archive index {index} out of range for {len(self.files)} file(s)"
            ) from None

    def __contains__(self, name: object) -> bool:
        return any(archived.name == name for archived in self.files)

    def __str__(self) -> str:
        return format_archive(self)


def parse(source: str) -> Archive:
    """Parse a txtar archive string.

    Args:
        source: The txtar text to parse

    Returns:
        The parsed Archive. Every comment and file body is either empty or ends
        with a single newline, added when the source lacked one.
    """
    segments = _scan(source)
    _, comment = next(segments)
    files = tuple(File(name, _fix_trailing_newline(text)) for name, text in segments)
    archive = Archive(_fix_trailing_newline(comment), files)
    LOGGER.debug(
        "Parsed txtar archive with %d file(s) and a %d character comment",
        len(archive.files),
        len(archive.comment),
    )
    return archive


def format_archive(archive: Archive) -> str:
    """Serialize an archive back to txtar text.

    Missing trailing newlines on the comment and file bodies are added, matching
    what :func:`parse` would report for the same text.
    """
    parts = [_fix_trailing_newline(archive.comment)]
    parts.extend(str(archived) for archived in archive.files)
    return "".join(parts)


def _reject_marker_lines(text: str, where: str) -> None:
    for line_start, line_end in _iter_lines(text):
        line = text[line_start:line_end]
        if marker_name(line) is not None:
            LOGGER.debug("Rejected marker line %r in %s", line, where)
            raise MarkerInContentError(f"Marker line {line.rstrip()!r} found in {where}")


class ArchiveBuilder:
    """Assemble an :class:`Archive` piece by piece.

    Names and bodies are validated so that the built archive formats to text
    that parses back to the same archive.
    """

    def __init__(self, comment: str = ""):
        self._comment = ""
        self._files: List[File] = []
        self.set_comment(comment)

    def set_comment(self, comment: str) -> "ArchiveBuilder":
        """Replace the archive comment.

        Raises:
            MarkerInContentError: If the comment contains a marker line
        """
        comment = _fix_trailing_newline(comment)
        _reject_marker_lines(comment, "comment")
        self._comment = comment
        return self

    def add_file(self, name: str, content: str = "") -> "ArchiveBuilder":
        """Append a file entry.

        Args:
            name: File name to place on the marker line
            content: File body; a trailing newline is added when missing

        Raises:
            InvalidFileNameError: If the name spans lines or has surrounding whitespace
            MarkerInContentError: If the body contains a marker line
        """
        if "\n" in name:
            LOGGER.debug("Rejected multi-line txtar file name %r", name)
            raise InvalidFileNameError(f"File name {name!r} contains a newline")
        if name != name.strip():
            LOGGER.debug("Rejected txtar file name with surrounding whitespace %r", name)
            raise InvalidFileNameError(
                f"File name {name!r} has leading or trailing whitespace"
            )
        content = _fix_trailing_newline(content)
        _reject_marker_lines(content, f"file {name!r}")
        self._files.append(File(name, content))
        return self

    def build(self) -> Archive:
        """Return an immutable snapshot of the entries added so far."""
        return Archive(self._comment, self._files)


__all__ = [
    "Archive",
    "ArchiveBuilder",
    "File",
    "InvalidFileNameError",
    "MarkerInContentError",
    "TxtarError",
    "format_archive",
    "marker_name",
    "parse",
]
