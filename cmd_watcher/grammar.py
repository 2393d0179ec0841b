"""Command grammar for the control file.

Recognised forms (case-sensitive, first matching prefix wins):

    create a file <path>
    delete the file <path>
    rename the file <old path> to <new path>
    add to the file <path> this content: <content>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

CREATE_FILE = "create a file "
DELETE_FILE = "delete the file "
RENAME_FILE = "rename the file "
ADD_TO_FILE = "add to the file "

RENAME_SEPARATOR = " to "
CONTENT_SEPARATOR = " this content: "


@dataclass(frozen=True)
class CreateFile:
    path: str


@dataclass(frozen=True)
class DeleteFile:
    path: str


@dataclass(frozen=True)
class RenameFile:
    old_path: str
    new_path: str


@dataclass(frozen=True)
class AppendToFile:
    path: str
    content: str


Command = Union[CreateFile, DeleteFile, RenameFile, AppendToFile]


def _first_line(rest: str) -> str:
    return rest.split("\n", 1)[0].rstrip("\r")


def _parse_create(rest: str) -> Command | None:
    path = _first_line(rest)
    return CreateFile(path) if path else None


def _parse_delete(rest: str) -> Command | None:
    path = _first_line(rest)
    return DeleteFile(path) if path else None


def _parse_rename(rest: str) -> Command | None:
    old_path, sep, new_path = _first_line(rest).partition(RENAME_SEPARATOR)
    if not sep or not old_path or not new_path:
        return None
    return RenameFile(old_path, new_path)


def _parse_add(rest: str) -> Command | None:
    path, sep, content = rest.partition(CONTENT_SEPARATOR)
    # content may span lines; the path may not
    if not sep or not path or "\n" in path:
        return None
    return AppendToFile(path, content)


# Checked in this order; the first prefix the text starts with wins.
_RULES = (
    (CREATE_FILE, _parse_create),
    (DELETE_FILE, _parse_delete),
    (RENAME_FILE, _parse_rename),
    (ADD_TO_FILE, _parse_add),
)


def parse(data: bytes | str) -> Command | None:
    """Return the command held in *data*, or None when nothing is recognised.

    Bytes are decoded as UTF-8; undecodable input is logged and ignored.
    Paths end at the first line break; appended content runs to the end
    of the text, less trailing line terminators.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            logger.warning("Control file is not valid UTF-8 (%s); ignoring.", exc)
            return None
    else:
        text = data

    text = text.rstrip("\r\n")

    for prefix, build in _RULES:
        if text.startswith(prefix):
            command = build(text[len(prefix):])
            if command is None:
                logger.info("Malformed %r command: %r", prefix.strip(), text)
            return command

    logger.info("Unrecognised command: %r", text)
    return None


def describe(command: Command) -> str:
    """Return a short human-readable description of *command*."""
    if isinstance(command, CreateFile):
        return f"create {command.path}"
    if isinstance(command, DeleteFile):
        return f"delete {command.path}"
    if isinstance(command, RenameFile):
        return f"rename {command.old_path} -> {command.new_path}"
    return f"append {len(command.content)} chars to {command.path}"
