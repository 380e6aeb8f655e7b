"""Parse unified diff text into structured per-file line edits.

Accepts the output of `git format-patch --stdout` (mail headers, message
and diff), `git diff`, and plain unified diffs without `diff --git`
headers. File sections and hunks are read with unidiff; the mail headers
of format-patch output are read with the stdlib mail parser.
"""

from __future__ import annotations

import logging
import re
from email.header import decode_header, make_header
from email.parser import HeaderParser
from email.utils import parseaddr
from typing import Any, Optional

from unidiff import PatchedFile, PatchSet, UnidiffParseError
from unidiff.constants import (
    DEV_NULL,
    RE_DIFF_GIT_HEADER,
    RE_DIFF_GIT_HEADER_NO_PREFIX,
    RE_HUNK_HEADER,
)

from gitreplay.core import CommitPatch, EditKind, FileChange, LineEdit
from gitreplay.errors import MalformedPatch

logger = logging.getLogger(__name__)

MBOX_FROM_PATTERN = re.compile(r"^From ([0-9a-f]{7,64}) ")
PATCH_TAG_PATTERN = re.compile(r"^\[PATCH[^\]]*\]\s*")
RENAME_COPY_PATTERN = re.compile(r"^(rename|copy) (from|to) (.+)$")


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of paths with unusual characters.

    e.g. "a/caf\\303\\251.txt" -> a/café.txt
    """
    if len(path) >= 2 and path[0] == '"' and path[-1] == '"':
        inner = path[1:-1]
        raw = inner.encode("latin-1", "backslashreplace").decode("unicode_escape")
        return raw.encode("latin-1").decode("utf-8", errors="surrogateescape")
    return path


def strip_prefix(path: str, prefix: str) -> str:
    """Remove a git a/ or b/ prefix if present."""
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


def _file_name(name: Optional[str], prefix: str) -> Optional[str]:
    """Turn a unidiff source or target name into a repository path."""
    if name is None:
        return None
    name = unquote_path(name)
    if name == DEV_NULL:
        return None
    return strip_prefix(name, prefix)


def _line_text(value: str) -> str:
    return value[:-1] if value.endswith("\n") else value


def _decode_header(value: Any) -> str:
    """Decode RFC 2047 encoded-words in a mail header."""
    return str(make_header(decode_header(str(value))))


def check_section_headers(lines: list[str], first_line: int = 1) -> None:
    """Reject `diff --git` and `@@` lines that unidiff would keep as patch info.

    Raises:
        MalformedPatch: With the 1-based line number of the offending line.
    """
    for number, line in enumerate(lines, first_line):
        if line.startswith("@@") and not RE_HUNK_HEADER.match(line):
            raise MalformedPatch("Cannot parse hunk header", number, line)
        if line.startswith("diff --git ") and not (
            RE_DIFF_GIT_HEADER.match(line) or RE_DIFF_GIT_HEADER_NO_PREFIX.match(line)
        ):
            raise MalformedPatch("Cannot read file names from diff header", number, line)


def file_change(patched: PatchedFile) -> FileChange:
    """Convert one unidiff file section to a FileChange.

    Created and deleted files are recognised by /dev/null on one side (git
    sets it for `new file mode` and `deleted file mode` too). A hunk that
    fills an empty file or empties a file does not count as either.
    """
    change = FileChange(
        before_name=_file_name(patched.source_file, "a/"),
        after_name=_file_name(patched.target_file, "b/"),
        binary=patched.is_binary_file,
    )
    change.created = change.before_name is None
    change.deleted = change.after_name is None

    for info in patched.patch_info or []:
        match = RENAME_COPY_PATTERN.match(info.rstrip("\n"))
        if not match:
            continue
        verb, side, name = match.groups()
        if verb == "copy":
            change.copied = True
        if side == "from":
            change.before_name = unquote_path(name)
        else:
            change.after_name = unquote_path(name)

    for hunk in patched:
        for line in hunk:
            if line.is_added:
                change.edits.append(LineEdit(EditKind.ADDED, line.target_line_no, _line_text(line.value)))
            elif line.is_removed:
                change.edits.append(LineEdit(EditKind.REMOVED, line.source_line_no, _line_text(line.value)))
    return change


class PatchParser:
    """Single-use parser for one commit's patch text."""

    def __init__(self, text: str):
        self.lines = text.split("\n")
        self.patch = CommitPatch()

    def parse(self) -> CommitPatch:
        index = self._parse_mail_headers()
        diff_lines = self.lines[index:]
        check_section_headers(diff_lines, index + 1)

        try:
            patch_set = PatchSet("\n".join(diff_lines))
        except UnidiffParseError as exc:
            raise MalformedPatch(str(exc)) from exc

        self.patch.files = [file_change(patched) for patched in patch_set]
        logger.debug("Parsed patch with %d file(s)", len(self.patch.files))
        return self.patch

    def _parse_mail_headers(self) -> int:
        """Read format-patch mail headers and message body.

        Returns:
            Index of the first line after the commit message.
        """
        match = MBOX_FROM_PATTERN.match(self.lines[0])
        if not match:
            return 0

        self.patch.sha = match.group(1)

        index = 1
        while index < len(self.lines) and self.lines[index] != "":
            index += 1
        headers = HeaderParser().parsestr("\n".join(self.lines[1:index]) + "\n")

        from_header = headers.get("From")
        if from_header:
            name, email_address = parseaddr(_decode_header(from_header))
            self.patch.author = name or email_address
            self.patch.author_email = email_address
        if headers.get("Date"):
            self.patch.date = str(headers["Date"])
        subject = _decode_header(headers.get("Subject", "")).replace("\n", "").strip()
        subject = PATCH_TAG_PATTERN.sub("", subject)
        self.patch.subject = subject

        body: list[str] = []
        index += 1
        while index < len(self.lines):
            line = self.lines[index]
            if line == "---" or line.startswith("diff --git "):
                break
            body.append(line)
            index += 1

        body_text = "\n".join(body).strip()
        self.patch.message = f"{subject}\n\n{body_text}" if body_text else subject
        return index


def parse_patch(text: str) -> CommitPatch:
    """Parse the patch text of a single commit.

    Args:
        text: Unified diff text, optionally wrapped in format-patch mail headers.

    Returns:
        CommitPatch with one FileChange per file section, in patch order.

    Raises:
        MalformedPatch: If a file section or hunk cannot be parsed.
    """
    return PatchParser(text).parse()
