from etchosts.access import HostsFileReader, make_writer
from etchosts.model import HostEntry, HostsManager, is_valid_ip, parse_content, toggle_content

__version__ = "0.1.0"

__all__ = [
    "HostEntry",
    "HostsFileReader",
    "HostsManager",
    "is_valid_ip",
    "make_writer",
    "parse_content",
    "toggle_content",
]
