"""
URI classification for the HTML safety filter.

Attribute values are compared after HTML entity decoding and after removing
whitespace and control characters, the way browsers tolerate them inside a
scheme ('java&#x0A;script:', 'javasc&#x72ipt:').
"""

import html
import re

SCRIPT_SCHEMES = ('javascript:', 'vbscript:', 'livescript:')

# http(s)/ftp URLs and protocol relative URLs load from other hosts
EXTERNAL_RE = re.compile(r'^(?:(?:https?|ftp):|//)', re.IGNORECASE)
SCHEME_RE = re.compile(r'^[a-z][a-z0-9+.\-]*:', re.IGNORECASE)
IGNORED_CHARS_RE = re.compile(r'[\x00-\x20\x7f]+')

SCRIPT = 'script'
EXTERNAL = 'external'
INTERNAL = 'internal'
OTHER = 'other'


def normalize(value):
    """Entity decoded value without whitespace and control characters."""
    if not value:
        return ''
    return IGNORED_CHARS_RE.sub('', html.unescape(value))


def is_script_uri(value):
    return normalize(value).lower().startswith(SCRIPT_SCHEMES)


def classify(value):
    """
    Classify a URI.

    Returns:
        'script' for javascript:/vbscript: URIs, 'external' for URLs loading
        from another host, 'internal' for relative and absolute paths,
        'other' for everything else (data:, cid:, mailto:, fragments), or
        None for an empty value
    """
    uri = normalize(value)
    if not uri:
        return None
    if uri.lower().startswith(SCRIPT_SCHEMES):
        return SCRIPT
    if EXTERNAL_RE.match(uri):
        return EXTERNAL
    if SCHEME_RE.match(uri) or uri.startswith('#'):
        return OTHER
    return INTERNAL


def is_blocked(value, no_ext_src_load=False, no_int_src_load=False, no_javascript=False):
    """Whether loading the URI is forbidden by the given flags."""
    kind = classify(value)
    if kind == SCRIPT:
        return no_javascript
    if kind == EXTERNAL:
        return no_ext_src_load
    if kind == INTERNAL:
        return no_int_src_load
    return False
