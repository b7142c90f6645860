"""Link and domain extraction from user authored text.

Detection is regex based and approximate: it finds ``href`` attribute values
and bare ``http(s)://`` or ``www.`` URLs in plain text or HTML. Only links
that resolve to a host count.
"""

import re
from typing import Iterable, Iterator
from urllib.parse import urlparse

import tldextract

_HREF_RE = re.compile(r"""href\s*=\s*["']([^"']+)["']""", re.I)
_URL_RE = re.compile(r"""\b(?:https?://|www\.)[^\s<>"']+""", re.I)
_TRAILING = ".,;:!?)]}"
_FORBIDDEN_HOST_CHARS = set("/\\@:?#[]<>\"'%,;")

# Bundled public suffix snapshot, no network fetch at runtime.
_extract = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)


def _is_local_href(url: str) -> bool:
    if url.startswith(("#", "?", "./", "../")):
        return True
    return url.startswith("/") and not url.startswith("//")


def extract_links(text: str | None) -> Iterator[str]:
    if not text:
        return
    seen: set[str] = set()
    for match in _HREF_RE.finditer(text):
        url = match.group(1).strip()
        if url and not _is_local_href(url) and url not in seen:
            seen.add(url)
            yield url
    # Drop tags so urls inside attributes are not reported twice.
    plain = re.sub(r"<[^>]*>", " ", text)
    for match in _URL_RE.finditer(plain):
        url = match.group(0).rstrip(_TRAILING)
        if url and url not in seen:
            seen.add(url)
            yield url


def has_links(texts: Iterable[str | None]) -> bool:
    for text in texts:
        for url in extract_links(text):
            if url_domain(url):
                return True
    return False


def normalize_domain(value: str | None) -> str | None:
    """Canonical ASCII (punycode) form of a host name, or None when invalid.

    ``Bücher.DE.`` and ``xn--bcher-kva.de`` normalize to the same value.
    """
    if not value:
        return None
    host = value.strip().lower().rstrip(".")
    if not host or any(ch.isspace() or ch in _FORBIDDEN_HOST_CHARS for ch in host):
        return None
    extracted = _extract(host)
    if extracted.ipv4:
        return extracted.ipv4
    parts = [part for part in (extracted.subdomain, extracted.domain, extracted.suffix) if part]
    if not parts:
        return None
    try:
        return ".".join(parts).encode("idna").decode("ascii")
    except UnicodeError:
        return None


def url_domain(url: str) -> str | None:
    candidate = url.strip()
    if not re.match(r"^[a-z][a-z0-9+.-]*://", candidate, re.I):
        if candidate.startswith("//"):
            candidate = "http:" + candidate
        elif re.match(r"^[a-z][a-z0-9+.-]*:", candidate, re.I) and not candidate.lower().startswith("www."):
            # mailto:, javascript: and friends carry no host
            return None
        else:
            candidate = "http://" + candidate
    try:
        hostname = urlparse(candidate).hostname
    except ValueError:
        return None
    return normalize_domain(hostname)


def link_domains(texts: Iterable[str | None]) -> tuple[str, ...]:
    domains: list[str] = []
    for text in texts:
        for url in extract_links(text):
            domain = url_domain(url)
            if domain and domain not in domains:
                domains.append(domain)
    return tuple(domains)


def email_domain(email: str | None) -> str | None:
    if not email or "@" not in email:
        return None
    return normalize_domain(email.rsplit("@", 1)[1])
