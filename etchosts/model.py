import difflib
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from etchosts.access import HostsFileReader, StaleEntryError, WriteError

logger = logging.getLogger(__name__)

# Always accepted, whatever the general checks say
KNOWN_ADDRESSES = {"255.255.255.255", "::1", "127.0.0.1"}

HEX_DIGITS = set("0123456789abcdefABCDEF")
IPV4_PART = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class HostEntry:
    ip: str
    domain: str
    original_line: str
    is_enabled: bool
    line_number: int

    @property
    def label(self) -> str:
        return self.domain


def is_valid_ipv4(ip: str) -> bool:
    """Loose IPv4 check: exactly 4 non-empty dot-separated parts in [0, 255].

    Empty parts from repeated or trailing dots are ignored, so ``1..2.3.4``
    and ``1.2.3.4.`` pass.
    """
    parts = [part for part in ip.split(".") if part]
    if len(parts) != 4:
        return False
    for part in parts:
        if not IPV4_PART.fullmatch(part):
            return False
        if not 0 <= int(part) <= 255:
            return False
    return True


def is_valid_ipv6(ip: str) -> bool:
    """Loose IPv6 check: at most 8 non-empty groups of at most 4 hex digits.

    Empty groups from ``::`` are not counted, so compressed forms like
    ``fe80::1`` and ``::1:2:3:4:5:6:7`` are accepted along with irregular
    ``::`` placements.
    """
    parts = [part for part in ip.split(":") if part]
    if len(parts) > 8:
        return False
    return all(len(part) <= 4 and all(c in HEX_DIGITS for c in part) for part in parts)


def is_valid_ip(ip: str) -> bool:
    if ip in KNOWN_ADDRESSES:
        return True
    return is_valid_ipv4(ip) or is_valid_ipv6(ip)


def split_lines(content: str) -> List[str]:
    return content.split("\n")


def join_lines(lines: List[str]) -> str:
    return "\n".join(lines)


def is_commented(line: str) -> bool:
    return line.strip().startswith("#")


def parse_line(line: str, line_number: int) -> Optional[HostEntry]:
    """Parses one hosts line, returning None for blank or non-host lines."""
    trimmed = line.strip()
    if not trimmed:
        return None

    is_comment = trimmed.startswith("#")
    to_process = trimmed[1:].strip() if is_comment else trimmed

    tokens = to_process.split()
    if len(tokens) < 2 or not is_valid_ip(tokens[0]):
        return None

    return HostEntry(
        ip=tokens[0],
        domain=tokens[1],
        original_line=line,
        is_enabled=not is_comment,
        line_number=line_number,
    )


def parse_content(content: str) -> List[HostEntry]:
    """Parses hosts file content into HostEntry objects, in file order."""
    entries = []
    for index, line in enumerate(split_lines(content)):
        entry = parse_line(line, index)
        if entry is not None:
            entries.append(entry)
    return entries


def set_line_enabled(line: str, enabled: bool) -> str:
    """Returns ``line`` commented out or uncommented.

    Disabling prefixes ``"# "`` unless the line is already commented.
    Enabling removes exactly one leading ``#`` and trims the result.
    """
    if not enabled:
        if is_commented(line):
            return line
        return "# " + line

    ending = "\r" if line.endswith("\r") else ""
    stripped = line.strip()
    if stripped.startswith("#"):
        stripped = stripped[1:].strip()
    return stripped + ending


def toggle_content(entry: HostEntry, full_original_content: str) -> str:
    """Flips the enabled state of ``entry``'s line and returns the new content.

    The current state is taken from the line as it is in
    ``full_original_content``, not from ``entry.is_enabled``.
    """
    lines = split_lines(full_original_content)
    if not 0 <= entry.line_number < len(lines):
        raise StaleEntryError(
            f"Line {entry.line_number + 1} no longer exists; reload the hosts file."
        )

    live_line = lines[entry.line_number]
    live = parse_line(live_line, entry.line_number)
    if live is None or (live.ip, live.domain) != (entry.ip, entry.domain):
        raise StaleEntryError(
            f"Line {entry.line_number + 1} changed since it was loaded "
            f"(expected {entry.ip} {entry.domain}); reload the hosts file."
        )

    lines[entry.line_number] = set_line_enabled(live_line, not live.is_enabled)
    return join_lines(lines)


class HostsManager:
    """Loads hosts entries and toggles them through the given collaborators.

    ``reader`` provides ``read() -> str`` and ``writer`` provides
    ``write(content)``. No locking is done here: callers must not run two
    toggles at the same time.
    """

    def __init__(self, reader=None, writer=None):
        self.reader = reader or HostsFileReader()
        self.writer = writer
        self.entries: List[HostEntry] = []

    @property
    def hosts_path(self) -> str:
        return getattr(self.reader, "path", "hosts")

    def load(self) -> List[HostEntry]:
        """Reads and parses the hosts file, replacing ``entries`` on success."""
        content = self.reader.read()
        self.entries = parse_content(content)
        logger.debug("Loaded %d entries from %s", len(self.entries), self.hosts_path)
        return self.entries

    def toggle(self, entry: HostEntry) -> List[HostEntry]:
        """Enables or disables ``entry`` and returns the reloaded entries.

        On any failure the error propagates and ``entries`` is unchanged.
        """
        if self.writer is None:
            raise WriteError(f"No writer configured; {self.hosts_path} is read-only.")

        content = self.reader.read()
        new_content = toggle_content(entry, content)
        action = "Disabling" if is_commented(split_lines(new_content)[entry.line_number]) else "Enabling"
        logger.info("%s %s %s (line %d)", action, entry.ip, entry.domain, entry.line_number + 1)

        self.writer.write(new_content)
        return self.load()

    def preview_toggle(self, entry: HostEntry) -> str:
        """Generates a diff between the hosts file and the content a toggle would write."""
        current_content = self.reader.read()
        new_content = toggle_content(entry, current_content)

        diff = difflib.unified_diff(
            split_lines(current_content),
            split_lines(new_content),
            fromfile=f"{self.hosts_path} (current)",
            tofile=f"{self.hosts_path} (new)",
            lineterm=""
        )
        return "\n".join(diff)
