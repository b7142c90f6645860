from typing import Iterable, Sequence

from .links import normalize_domain


def domain_matches(domain: str | None, entry: str | None) -> bool:
    """Whole-domain or parent-domain match, case-insensitive.

    ``mail.spam.org`` matches ``spam.org``; ``notspam.org`` does not.
    """
    domain = normalize_domain(domain)
    entry = normalize_domain((entry or "").lstrip("*").lstrip("."))
    if not domain or not entry:
        return False
    return domain == entry or domain.endswith("." + entry)


def any_listed(domains: Iterable[str], entries: Sequence[str]) -> bool:
    return any(domain_matches(domain, entry) for domain in domains for entry in entries)


def decide(domains: Sequence[str], allowlist: Sequence[str], blocklist: Sequence[str], satisfied: bool) -> bool:
    if not satisfied:
        return False
    if allowlist and any_listed(domains, allowlist):
        return False
    if blocklist:
        # with a blocklist configured only listed domains score
        return any_listed(domains, blocklist)
    return satisfied
