"""Git integration module for Peakview."""

from peakview.git.remote_config import RemoteConfigParser, parse_remote_url
from peakview.git.url_resolver import names_match, to_browser_url, to_display_name

__all__ = [
    "RemoteConfigParser",
    "names_match",
    "parse_remote_url",
    "to_browser_url",
    "to_display_name",
]
