"""URL helpers."""

from __future__ import annotations

from urllib.parse import urlparse


def extract_hostname(url: str) -> str:
    """Return the lowercased hostname of *url*, or ``""`` if there is none.

    Unlike a registrable-domain lookup this keeps every label, including a
    leading ``www.``, because provider hostnames are matched exactly.

    Examples:
        >>> extract_hostname("https://www.buchsys.de/fu-berlin/angebote/")
        'www.buchsys.de'
        >>> extract_hostname("https://SPORT.htw-berlin.de/kurs")
        'sport.htw-berlin.de'
        >>> extract_hostname("not a url")
        ''
    """
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError):
        return ""
    return (parsed.hostname or "").lower()
