"""Version control provenance and URL normalization."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar
from urllib.parse import urlsplit, urlunsplit

# type aliases as reported by package managers -> canonical type
_VCS_TYPE_ALIASES: dict[str, str] = {
    "git": "git",
    "github": "git",
    "mercurial": "mercurial",
    "hg": "mercurial",
    "svn": "subversion",
    "subversion": "subversion",
    "cvs": "cvs",
    "darcs": "darcs",
    "bazaar": "bazaar",
    "bzr": "bazaar",
}

# Hosts whose clone URLs always end in ".git".
_GIT_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")

# git@host:owner/repo(.git)
_SCP_LIKE_RE = re.compile(r"^(?:[\w.\-]+@)?([\w.\-]+):(?!//)(.+)$")


def normalize_vcs_type(vcs_type: str) -> str:
    t = vcs_type.strip().lower()
    return _VCS_TYPE_ALIASES.get(t, t)


def _hostname(url: str) -> str:
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def normalize_vcs_url(url: str) -> str:
    """Clean a VCS URL: strip credentials, rewrite scp-style and ``git://`` URLs
    of well-known hosts to https, and drop trailing slashes.

    Applying it twice gives the same result as applying it once. URLs that
    cannot be split, e.g. with a non-numeric port, are returned as they are.
    """
    url = url.strip()
    if not url:
        return ""

    if url.startswith("git+"):
        url = url[len("git+") :]

    if "://" not in url:
        m = _SCP_LIKE_RE.match(url)
        if m and m.group(1) in _GIT_HOSTS:
            url = f"https://{m.group(1)}/{m.group(2)}"
        elif url.startswith(tuple(f"{host}/" for host in _GIT_HOSTS)):
            url = f"https://{url}"
        else:
            # Relative or local path, nothing to normalize beyond slashes.
            return url.rstrip("/") or url

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return url
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    netloc = f"{host}:{port}" if port else host
    path = parts.path.rstrip("/")

    if host in _GIT_HOSTS:
        if scheme in ("git", "ssh", "http"):
            scheme = "https"
            netloc = host
        if path and not path.endswith(".git"):
            path = f"{path}.git"

    return urlunsplit((scheme, netloc, path, parts.query, ""))


@dataclass(frozen=True)
class VcsInfo:
    """Where the sources of a package or project live."""

    type: str = ""
    url: str = ""
    revision: str = ""
    path: str = ""

    EMPTY: ClassVar[VcsInfo]

    def normalize(self) -> VcsInfo:
        """Return the processed variant of this info (idempotent)."""
        return VcsInfo(
            type=normalize_vcs_type(self.type),
            url=normalize_vcs_url(self.url),
            revision=self.revision.strip(),
            path=self.path.strip().strip("/"),
        )

    def merge(self, other: VcsInfo) -> VcsInfo:
        """Fill empty fields of this info from *other*."""
        return VcsInfo(
            type=self.type or other.type,
            url=self.url or other.url,
            revision=self.revision or other.revision,
            path=self.path or other.path,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "url": self.url,
            "revision": self.revision,
            "path": self.path,
        }


VcsInfo.EMPTY = VcsInfo()


def process_package_vcs(vcs: VcsInfo, homepage_url: str = "") -> VcsInfo:
    """Derive processed VCS info for a package, using the homepage as a hint
    when it points at a well-known code hosting site."""
    processed = vcs.normalize()
    if not processed.url and homepage_url:
        hint = normalize_vcs_url(homepage_url)
        if _hostname(hint) in _GIT_HOSTS:
            processed = VcsInfo(
                type=processed.type or "git",
                url=hint,
                revision=processed.revision,
                path=processed.path,
            )
    return processed
