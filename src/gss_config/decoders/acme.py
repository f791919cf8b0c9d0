"""Decoders for the ACME registration fields.

Certificate issuance is not part of this package; these decoders only make
sure that an operator who enables ACME supplies well-formed values.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from .shapes import expect_string, string_items
from ..domain.config import ACMEURL, ACMEChallengePath, ACMEDomains, ACMEEmail
from ..domain.errors import ValidationError

_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_DOMAIN = re.compile(r"(\*\.)?([a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}")
_FORBIDDEN_URL_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


def decode_email(value: object) -> ACMEEmail:
    """
    Examples
    --------
    >>> decode_email("admin@example.com")
    'admin@example.com'
    """

    email = expect_string(value, "invalid email address: ACME email expects a string")
    if not _EMAIL.fullmatch(email):
        raise ValidationError(f"invalid email address: {email}")
    return ACMEEmail(email)


def decode_url(value: object) -> ACMEURL:
    """Accept absolute URIs only: a scheme and an authority are required."""

    url = expect_string(value, "invalid ACME URL: ACME URL expects a string")
    if _FORBIDDEN_URL_CHARS.search(url):
        raise ValidationError(f"invalid ACME URL: {url!r} contains whitespace or control characters")
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise ValidationError(f"invalid ACME URL: {url}: {exc}") from exc
    if not parts.scheme or not parts.netloc:
        raise ValidationError(f"invalid ACME URL: {url} is not an absolute URI")
    return ACMEURL(url)


def decode_domains(value: object) -> ACMEDomains:
    """Decode a comma-separated string or list of host names.

    Entries are trimmed; a single leading ``*.`` wildcard label is allowed.

    Examples
    --------
    >>> decode_domains("example.com, *.example.com")
    ('example.com', '*.example.com')
    """

    domains: list[str] = []
    for item in string_items(value, "ACME domains"):
        domain = item.strip()
        if not _DOMAIN.fullmatch(domain):
            raise ValidationError(f"invalid domain name: {domain!r}")
        if domain in domains:
            raise ValidationError(f"duplicate domain name: {domain}")
        domains.append(domain)
    return ACMEDomains(domains)


def decode_challenge_path(value: object) -> ACMEChallengePath:
    """Accept a literal absolute URL path.

    Parsing the value as a URL must give back exactly the same path: a query,
    a fragment, an authority, or a percent-escape makes the value ambiguous
    and is rejected.
    """

    path = expect_string(value, "invalid ACME challenge path: ACME challenge path expects a string")
    if not path.startswith("/"):
        raise ValidationError(f"invalid ACME challenge path: ACME challenge path must start with '/': {path!r}")
    try:
        parsed = urlsplit(path).path
    except ValueError as exc:
        raise ValidationError(f"invalid ACME challenge path: {path!r}: {exc}") from exc
    if parsed != path or "%" in path:
        raise ValidationError(f"invalid ACME challenge path: {path!r}")
    return ACMEChallengePath(path)
