"""
CSS helpers of the HTML safety filter.

Handles the two CSS script vectors (IE 'expression(...)' and 'url()'
references to javascript: URIs) and the src-load restrictions on url()
references, for both inline style attributes and <style> blocks.
"""

import re

from . import uri

COMMENT_RE = re.compile(r'/\*.*?(?:\*/|$)', re.DOTALL)
ESCAPE_RE = re.compile(r'\\(?:([0-9a-fA-F]{1,6})[ \t\r\n\f]?|(.))', re.DOTALL)
WHITESPACE_RE = re.compile(r'\s+')
EXPRESSION_RE = re.compile(r'expression\s*\(', re.IGNORECASE)
URL_RE = re.compile(
    r'''(?:content\s*:\s*)?url\(\s*(?:"([^"]*)"|'([^']*)'|([^)'"]*?))\s*\)''',
    re.IGNORECASE,
)

SCRIPT_VECTORS = ('expression(', 'javascript:', 'vbscript:')


def _unescape(match):
    if match.group(1):
        codepoint = int(match.group(1), 16)
        if codepoint == 0 or codepoint > 0x10FFFF:
            return '\ufffd'
        return chr(codepoint)
    return match.group(2)


def normalize(css):
    """CSS text without comments and with backslash escapes decoded."""
    return ESCAPE_RE.sub(_unescape, COMMENT_RE.sub('', css))


def compact(css):
    return WHITESPACE_RE.sub('', normalize(css)).lower()


def is_obfuscated(css):
    """Comments or escapes, which can hide a vector from plain matching."""
    return normalize(css) != css


def has_expression(css):
    return 'expression(' in compact(css)


def has_script_vector(css):
    normalized = compact(css)
    return any(vector in normalized for vector in SCRIPT_VECTORS)


def strip_expressions(css):
    """Remove every expression(...) construct, balancing nested parentheses."""
    while True:
        match = EXPRESSION_RE.search(css)
        if match is None:
            return css

        depth = 0
        end = len(css)
        for index in range(match.end() - 1, len(css)):
            if css[index] == '(':
                depth += 1
            elif css[index] == ')':
                depth -= 1
                if depth == 0:
                    end = index + 1
                    break

        css = css[:match.start()] + css[end:]


def strip_urls(css, no_ext_src_load=False, no_int_src_load=False, no_javascript=False):
    """Remove url() and content:url() references blocked by the flags."""
    def replace(match):
        value = next((group for group in match.groups() if group is not None), '')
        if uri.is_blocked(value, no_ext_src_load, no_int_src_load, no_javascript):
            return ''
        return match.group(0)

    return URL_RE.sub(replace, css)


def sanitize_style(css, policy):
    """
    Sanitize the value of an inline style attribute.

    An obfuscated script vector empties the whole value; otherwise
    expression() constructs and blocked url() references are stripped.
    """
    if policy.no_javascript:
        if is_obfuscated(css) and has_script_vector(css):
            return ''
        css = strip_expressions(css)

    return strip_urls(
        css,
        no_ext_src_load=policy.no_ext_src_load,
        no_int_src_load=policy.no_int_src_load,
        no_javascript=policy.no_javascript,
    )


def sanitize_stylesheet(css, policy):
    """
    Sanitize the content of a <style> block.

    Returns:
        The sanitized content, or None when the block must be removed
    """
    if policy.no_javascript and has_expression(css):
        return None

    return strip_urls(
        css,
        no_ext_src_load=policy.no_ext_src_load,
        no_int_src_load=policy.no_int_src_load,
        no_javascript=policy.no_javascript,
    )
