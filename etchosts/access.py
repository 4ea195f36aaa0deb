"""Reading and privileged writing of the hosts file."""

import logging
import os
import shlex
import shutil
import subprocess
import sys
import tempfile
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_HOSTS_PATH = "/etc/hosts"


class HostsError(Exception):
    """Base exception for hosts file operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReadError(HostsError):
    """Raised when the hosts file cannot be read or decoded."""


class AuthorizationError(HostsError):
    """Raised when administrator privileges are denied or unavailable."""


class WriteError(HostsError):
    """Raised when the privileged write mechanism fails."""


class StaleEntryError(HostsError):
    """Raised when an entry no longer matches the line it was parsed from."""


class ConfigError(HostsError):
    """Raised for invalid configuration values."""


class HostsFileReader:
    def __init__(self, path: str = DEFAULT_HOSTS_PATH):
        self.path = path

    def read(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError as e:
            raise ReadError(f"Hosts file not found at {self.path}") from e
        except PermissionError as e:
            raise ReadError(f"Cannot read {self.path}: Permission denied") from e
        except UnicodeDecodeError as e:
            raise ReadError(f"Cannot decode {self.path} as UTF-8: {e}") from e
        except OSError as e:
            raise ReadError(f"Cannot read {self.path}: {e}") from e


class DirectWriter:
    """Writes the hosts file in-process. Needs write access to its directory."""

    def __init__(self, path: str = DEFAULT_HOSTS_PATH, backup: bool = False):
        self.path = path
        self.backup = backup

    def write(self, content: str) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            if self.backup and os.path.exists(self.path):
                shutil.copy2(self.path, f"{self.path}.bak")
            fd, tmp_path = tempfile.mkstemp(prefix=".hosts.", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            if os.path.exists(self.path):
                shutil.copymode(self.path, tmp_path)
            else:
                os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except PermissionError as e:
            raise AuthorizationError(
                f"Cannot write to {self.path}: Permission denied. "
                "Run as root or choose the 'pkexec' writer."
            ) from e
        except OSError as e:
            raise WriteError(f"Cannot write to {self.path}: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
        logger.info("Wrote %d bytes to %s", len(content), self.path)


class PkexecWriter:
    """Writes the hosts file through polkit's pkexec, content passed on stdin."""

    # pkexec exit status when the dialog is dismissed or the user is not authorized
    AUTH_FAILED_CODES = (126, 127)

    def __init__(self, path: str = DEFAULT_HOSTS_PATH, backup: bool = False, pkexec: str = "pkexec"):
        self.path = path
        self.backup = backup
        self.pkexec = pkexec

    def build_script(self) -> str:
        target = shlex.quote(self.path)
        directory = shlex.quote(os.path.dirname(os.path.abspath(self.path)))
        steps = ["set -e"]
        if self.backup:
            steps.append(f"if [ -e {target} ]; then cp -p {target} {target}.bak; fi")
        steps.append(f'tmp="$(mktemp {directory}/.hosts.XXXXXX)"')
        steps.append('trap \'rm -f "$tmp"\' EXIT')
        steps.append('cat > "$tmp"')
        steps.append('chmod 0644 "$tmp"')
        steps.append(f'mv -f "$tmp" {target}')
        return "; ".join(steps)

    def write(self, content: str) -> None:
        logger.debug("Requesting pkexec write of %s", self.path)
        try:
            proc = subprocess.run(
                [self.pkexec, "/bin/sh", "-c", self.build_script()],
                input=content,
                text=True,
                capture_output=True,
            )
        except FileNotFoundError as e:
            raise AuthorizationError(
                "pkexec not found. Install polkit or run as root with the 'direct' writer."
            ) from e

        err = (proc.stderr or "").strip()
        if proc.returncode in self.AUTH_FAILED_CODES:
            raise AuthorizationError(
                "Administrator privileges were not granted." + (f" Details: {err}" if err else "")
            )
        if proc.returncode != 0:
            raise WriteError(
                f"Failed to update {self.path} (exit status {proc.returncode})."
                + (f" Details: {err}" if err else "")
            )
        logger.info("Wrote %d bytes to %s via pkexec", len(content), self.path)


class OsascriptWriter:
    """Writes the hosts file on macOS using an administrator-privileges AppleScript.

    The content is staged in a user-owned temp file and copied into place by
    ``install`` so the hosts file stays owned by root.
    """

    USER_CANCELED = "-128"

    def __init__(self, path: str = DEFAULT_HOSTS_PATH, backup: bool = False, osascript: str = "osascript"):
        self.path = path
        self.backup = backup
        self.osascript = osascript

    def build_script(self, tmp_path: str) -> str:
        target = shlex.quote(self.path)
        command = f"install -m 0644 -o root -g wheel {shlex.quote(tmp_path)} {target}"
        if self.backup:
            command = f"cp -p {target} {target}.bak; {command}"
        command = command.replace("\\", "\\\\").replace('"', '\\"')
        return f'do shell script "{command}" with administrator privileges'

    def write(self, content: str) -> None:
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix="hosts.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            try:
                proc = subprocess.run(
                    [self.osascript, "-e", self.build_script(tmp_path)],
                    text=True,
                    capture_output=True,
                )
            except FileNotFoundError as e:
                raise AuthorizationError("osascript not found; this writer needs macOS.") from e
        except OSError as e:
            raise WriteError(f"Cannot prepare temporary file: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

        err = (proc.stderr or "").strip()
        if proc.returncode != 0:
            if self.USER_CANCELED in err:
                raise AuthorizationError("Administrator privileges were not granted.")
            raise WriteError(
                "Failed to execute privileged operation." + (f" Details: {err}" if err else "")
            )
        logger.info("Wrote %d bytes to %s via osascript", len(content), self.path)


WRITERS = {
    "direct": DirectWriter,
    "pkexec": PkexecWriter,
    "osascript": OsascriptWriter,
}


def is_root() -> bool:
    try:
        return os.geteuid() == 0
    except AttributeError:
        return False


def make_writer(config: Dict, platform: Optional[str] = None):
    """Builds the privileged write collaborator named by ``config["writer"]``."""
    name = config.get("writer", "auto")
    path = config.get("hosts_path", DEFAULT_HOSTS_PATH)
    backup = bool(config.get("backup", False))
    platform = platform or sys.platform

    if name == "auto":
        if is_root():
            name = "direct"
        elif platform == "darwin":
            name = "osascript"
        else:
            name = "pkexec"
        logger.debug("Selected '%s' writer", name)

    try:
        writer_cls = WRITERS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown writer '{name}'. Choose one of: auto, {', '.join(WRITERS)}"
        ) from None
    return writer_cls(path, backup=backup)
