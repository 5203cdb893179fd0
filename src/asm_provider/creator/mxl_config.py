"""Line based editing of Force10 switch configuration files.

FTOS configuration files are a flat list of lines where ``!`` separates
stanzas and a final ``end`` closes the file::

    hostname mxl-a1
    !
    interface ManagementEthernet 0/0
     ip address 172.17.9.1/16
     no shutdown
    !
    end

Every edit is a find-or-insert on whole lines.  New lines always go in
front of the ``!`` that precedes the final ``end``.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_HOSTNAME_RE = re.compile(r"^\s*hostname\s+(\S+)")
_SEPARATOR = "!"
_END = "end"


class SwitchConfigText:
    """Mutable view over the lines of a switch configuration.

    Args:
        text: Configuration file contents.
    """

    def __init__(self, text: str) -> None:
        self._trailing_newline = text.endswith("\n")
        self.lines: list[str] = text.splitlines()

    def render(self) -> str:
        out = "\n".join(self.lines)
        if self._trailing_newline:
            out += "\n"
        return out

    def __str__(self) -> str:
        return self.render()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def hostname(self) -> str | None:
        for line in self.lines:
            match = _HOSTNAME_RE.match(line)
            if match:
                return match.group(1)
        return None

    def end_index(self) -> int | None:
        """Index of the last ``end`` line, or ``None`` when the file has none."""
        for i in range(len(self.lines) - 1, -1, -1):
            if self.lines[i].strip() == _END:
                return i
        return None

    def stanza_bounds(self, header: str) -> tuple[int, int] | None:
        """Return ``(start, stop)`` of the first stanza whose header starts with *header*.

        *stop* is one past the closing ``!`` line, or the end of the file
        when the stanza is never closed.
        """
        for start, line in enumerate(self.lines):
            if not line.strip().startswith(header):
                continue
            for stop in range(start + 1, len(self.lines)):
                if self.lines[stop].strip() == _SEPARATOR:
                    return start, stop + 1
            return start, len(self.lines)
        return None

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def insert_before_end(self, lines: list[str]) -> bool:
        """Insert *lines* before the ``!`` that closes the file.

        A ``!`` is added when the ``end`` line is not preceded by one.

        Returns:
            ``False`` when the file has no ``end`` line and nothing was inserted.
        """
        end = self.end_index()
        if end is None:
            logger.warning("Switch configuration has no end line, cannot add %s", lines)
            return False

        position = end
        while position > 0 and not self.lines[position - 1].strip():
            position -= 1
        if position > 0 and self.lines[position - 1].strip() == _SEPARATOR:
            self.lines[position - 1 : position - 1] = list(lines)
        else:
            self.lines[end:end] = list(lines) + [_SEPARATOR]
        return True

    def set_hostname(self, hostname: str) -> None:
        """Replace the ``hostname`` line, or add one when the file has none.

        Duplicate ``hostname`` lines are dropped so exactly one remains.
        """
        replaced = False
        lines: list[str] = []
        for line in self.lines:
            match = _HOSTNAME_RE.match(line)
            if match is None:
                lines.append(line)
                continue
            if not replaced:
                logger.debug("Updating configured hostname %s to %s", match.group(1), hostname)
                lines.append("hostname %s" % hostname)
                replaced = True
        self.lines = lines
        if not replaced:
            logger.debug("Configuration has no hostname, setting it to %s", hostname)
            self.insert_before_end(["hostname %s" % hostname])

    def replace_stanza(self, header: str, lines: list[str]) -> bool:
        """Replace the stanza starting with *header* by *lines*.

        Returns:
            ``False`` when no such stanza exists.
        """
        bounds = self.stanza_bounds(header)
        if bounds is None:
            return False
        start, stop = bounds
        self.lines[start:stop] = list(lines)
        return True

    def remove_stanza(self, header: str) -> bool:
        return self.replace_stanza(header, [])

    def remove_lines(self, prefix: str) -> int:
        """Drop every line that starts with *prefix* after indentation; return how many."""
        kept = [line for line in self.lines if not line.strip().startswith(prefix)]
        removed = len(self.lines) - len(kept)
        self.lines = kept
        return removed


def management_stanza(ip: str, cidr: str) -> list[str]:
    """Static ``ManagementEthernet 0/0`` stanza, closing ``!`` included."""
    return [
        "interface ManagementEthernet 0/0",
        " ip address %s/%s" % (ip, cidr),
        " no shutdown",
        _SEPARATOR,
    ]
