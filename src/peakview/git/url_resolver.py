"""Transforms between remote URLs, browser URLs and ``owner/repo`` names."""

import re
from urllib.parse import urlparse

# user@host:owner/repo(.git), the scp-like form git accepts for SSH remotes
_SSH_SHORTHAND = re.compile(r"^(?P<user>[^@/:\s]+)@(?P<host>[^:/\s]+):(?P<path>.+)$")


def _strip_git_suffix(value: str) -> str:
    return value[:-4] if value.endswith(".git") else value


def to_browser_url(remote_url: str) -> str | None:
    """Normalize a git remote URL to an HTTPS URL a browser can open.

    Handles:
    - git@github.com:org/repo.git -> https://github.com/org/repo
    - https://github.com/org/repo.git -> https://github.com/org/repo

    Returns None when the result is not an absolute URL.
    """
    url = remote_url.strip()
    ssh_match = _SSH_SHORTHAND.match(url)
    if ssh_match and "://" not in url:
        url = f"https://{ssh_match['host']}/{ssh_match['path']}"
    url = _strip_git_suffix(url)

    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return url


def to_display_name(remote_url: str) -> str | None:
    """Reduce a remote URL to its ``owner/repo`` path.

    Both ``git@host:owner/repo.git`` and ``https://host/owner/repo.git``
    yield ``owner/repo``. Returns None when nothing is left.
    """
    name = remote_url.strip()
    ssh_match = _SSH_SHORTHAND.match(name)
    if ssh_match and "://" not in name:
        name = ssh_match["path"]
    else:
        parsed = urlparse(name)
        if parsed.netloc:
            name = parsed.path.lstrip("/")
    name = _strip_git_suffix(name)
    return name or None


def names_match(remote_url: str, full_name: str) -> bool:
    """Case-insensitive comparison of a remote URL against ``owner/repo``."""
    display_name = to_display_name(remote_url)
    if display_name is None:
        return False
    return display_name.lower() == full_name.lower()
