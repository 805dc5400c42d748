"""URL canonicalization: the dedup and idempotency key across ingestion runs."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAM_PREFIXES = ("utm_",)
TRACKING_PARAMS = {
    "fbclid", "gclid", "dclid", "yclid", "msclkid", "mc_cid", "mc_eid",
    "cmpid", "s_kwcid", "mkt_tok", "_ga", "_hsenc", "_hsmi", "igsh",
    "ncid", "ocid", "smid", "sref", "sr_share", "spm", "ref", "ref_src",
}


def _is_tracking(key: str) -> bool:
    k = key.lower()
    return k in TRACKING_PARAMS or k.startswith(TRACKING_PARAM_PREFIXES)


def normalize_url(url: str | None) -> str:
    """Canonicalize an article URL.

    Strips known tracking query parameters, lowercases scheme and host,
    removes the trailing slash and fragment, and sorts the remaining query
    parameters. Strings that don't parse as absolute URLs are returned trimmed.
    """
    if not url:
        return ""
    url = url.strip()
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url

    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if not _is_tracking(k)]
    query.sort()
    path = parts.path.rstrip("/")

    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        path,
        urlencode(query, doseq=True),
        "",
    ))
