"""
HTML Safety Filter

Removes script vectors from untrusted HTML while leaving everything else
byte-for-byte untouched.

The input is tokenized with html.parser.HTMLParser (the tokenizer Django's
strip_tags is built on). Every token keeps its exact span in the source, so
the output is assembled from the original text: only the spans of removed
elements and rewritten attributes change. Passes are repeated until the
output is stable, so filtering the output again reports replaced=False.

Usage:
    from core.html_safety import safety

    result = safety('<a href="javascript:alert(1)">x</a>')
    # result.string   == '<a href="">x</a>'
    # result.replaced is True

    result = safety(html, no_ext_src_load=True, replacement_str='[removed]')
"""

import html
import logging
import re
from collections import namedtuple
from dataclasses import dataclass, fields
from html.parser import HTMLParser

from django.conf import settings

from . import css, uri

logger = logging.getLogger(__name__)


URI_ATTRIBUTES = frozenset({
    'href', 'src', 'background', 'poster', 'action', 'formaction',
    'xlink:href', 'lowsrc', 'dynsrc',
})

# attributes loading a resource while the page renders
RESOURCE_ATTRIBUTES = frozenset({'src', 'background', 'poster', 'lowsrc', 'dynsrc'})

VOID_ELEMENTS = frozenset({'embed'})

END_TAG_RE = re.compile(r'</[^>]*>?')

# '<' that a browser could read as the start of markup
MARKUP_START_RE = re.compile(r'<(?=[A-Za-z/!?])')

SCRIPT_IN_MARKUP_RE = re.compile(r'<\s*/?\s*script|javascript\s*:', re.IGNORECASE)

SPACE = ' \t\n\r\f'


SafetyResult = namedtuple('SafetyResult', ['string', 'replaced'])


@dataclass(frozen=True)
class SafetyPolicy:
    """
    Flags of the HTML safety filter.

    no_javascript also covers event handler attributes, javascript: URIs and
    CSS expression(). The src-load flags apply to resource attributes
    (src, background, poster) and CSS url() references.
    """
    no_applet: bool = True
    no_object: bool = True
    no_embed: bool = True
    no_svg: bool = True
    no_int_src_load: bool = False
    no_ext_src_load: bool = False
    no_javascript: bool = True
    replacement_str: str = ''

    @classmethod
    def from_settings(cls, **flags):
        """Policy from settings.HTML_SAFETY_POLICY, overridden by flags."""
        defaults = {}
        if settings.configured:
            defaults = getattr(settings, 'HTML_SAFETY_POLICY', None) or {}

        names = {field.name for field in fields(cls)}
        unknown = (set(defaults) | set(flags)) - names
        if unknown:
            raise TypeError(f"Unknown HTML safety flag(s): {', '.join(sorted(unknown))}")

        return cls(**{**defaults, **flags})

    def removes(self, tag):
        """Whether elements with this tag name are removed entirely."""
        return {
            'script': self.no_javascript,
            'applet': self.no_applet,
            'object': self.no_object,
            'embed': self.no_embed,
            'svg': self.no_svg,
        }.get(tag, False)


# ===== Tokenizer =====

Token = namedtuple('Token', ['kind', 'start', 'tag', 'raw'])

Attribute = namedtuple('Attribute', [
    'name',
    'start',          # start of the separator before the name
    'end',
    'value_start',    # value without quotes, None for attributes without value
    'value_end',
    'quoted_start',   # value including its quotes
    'quoted_end',
])


class HTMLTokenizer(HTMLParser):
    """Collects the tokens of a document together with their source offsets."""

    def __init__(self, source):
        super().__init__(convert_charrefs=True)
        self.source = source
        self.tokens = []
        self._line_starts = [0] + [match.end() for match in re.finditer('\n', source)]

    def tokenize(self):
        self.feed(self.source)
        self.close()
        return self.tokens

    def _offset(self):
        lineno, column = self.getpos()
        return self._line_starts[lineno - 1] + column

    def _add(self, kind, tag=None, raw=None):
        self.tokens.append(Token(kind, self._offset(), tag, raw))

    def handle_starttag(self, tag, attrs):
        self._add('start', tag, self.get_starttag_text())

    def handle_startendtag(self, tag, attrs):
        self._add('startend', tag, self.get_starttag_text())

    def handle_endtag(self, tag):
        self._add('end', tag)

    def handle_data(self, data):
        self._add('data')

    def handle_comment(self, data):
        self._add('markup')

    def handle_decl(self, decl):
        self._add('markup')

    def handle_pi(self, data):
        self._add('markup')

    def unknown_decl(self, data):
        self._add('markup')


def scan_attributes(tag_text):
    """
    Locate the attributes of a raw start tag.

    Follows the browser rules: attributes are separated by whitespace or
    '/', unquoted values end at whitespace or '>'.

    Returns:
        list of Attribute with offsets into tag_text
    """
    attributes = []
    length = len(tag_text)

    # skip '<' and the tag name
    pos = 1
    while pos < length and tag_text[pos] not in SPACE + '/>':
        pos += 1

    while pos < length:
        separator_start = pos
        while pos < length and (tag_text[pos] in SPACE or tag_text[pos] == '/'):
            pos += 1
        if pos >= length or tag_text[pos] == '>':
            break

        name_start = pos
        pos += 1
        while pos < length and tag_text[pos] not in SPACE + '/>=':
            pos += 1
        name = tag_text[name_start:pos].lower()
        name_end = pos

        probe = pos
        while probe < length and tag_text[probe] in SPACE:
            probe += 1

        if probe >= length or tag_text[probe] != '=':
            attributes.append(Attribute(name, separator_start, name_end, None, None, None, None))
            continue

        probe += 1
        while probe < length and tag_text[probe] in SPACE:
            probe += 1

        if probe < length and tag_text[probe] in '"\'':
            close = tag_text.find(tag_text[probe], probe + 1)
            if close < 0:
                close = length - 1 if tag_text.endswith('>') else length
                attribute_end = close
            else:
                attribute_end = close + 1
            attributes.append(Attribute(
                name, separator_start, attribute_end,
                probe + 1, close, probe, attribute_end,
            ))
            pos = attribute_end
        else:
            value_start = probe
            while probe < length and tag_text[probe] not in SPACE + '>':
                probe += 1
            attributes.append(Attribute(
                name, separator_start, probe,
                value_start, probe, value_start, probe,
            ))
            pos = probe

    return attributes


def attribute_value(tag_text, attribute):
    """Entity decoded value of an attribute, None when it has no value."""
    if attribute.value_start is None:
        return None
    return html.unescape(tag_text[attribute.value_start:attribute.value_end])


# ===== Filter =====

class HTMLSafetyFilter:
    """
    Applies a SafetyPolicy to HTML fragments.

    Stateless between calls; one instance can be shared across threads.
    """

    MAX_PASSES = 10

    def __init__(self, policy=None):
        self.policy = policy or SafetyPolicy()

    def filter(self, html_string):
        """
        Filter an HTML fragment.

        Returns:
            SafetyResult(string, replaced); replaced is True if the output
            differs from the input
        """
        if not html_string:
            return SafetyResult(html_string or '', False)

        output = html_string
        for _ in range(self.MAX_PASSES):
            result = _FilterPass(self.policy, output).run()
            if result == output:
                break
            output = result
        else:
            logger.warning(f"HTML safety filter did not converge after {self.MAX_PASSES} passes")

        replaced = output != html_string
        if replaced:
            logger.debug(f"HTML safety filter changed {len(html_string)} character(s) of input")

        return SafetyResult(output, replaced)


class _FilterPass:
    """One rewrite of a document; state lives only for a single pass."""

    def __init__(self, policy, source):
        self.policy = policy
        self.source = source
        self.out = []
        self.removing = None        # [tag, depth] of the element being removed
        self.style_start = None     # start tag of a buffered <style> block
        self.style_content = []
        self.in_script = False      # inside a kept <script> element

    def run(self):
        source = self.source
        tokens = HTMLTokenizer(source).tokenize()
        cursor = 0

        for index, token in enumerate(tokens):
            if token.start > cursor:
                self._text(source[cursor:token.start])

            next_start = tokens[index + 1].start if index + 1 < len(tokens) else len(source)
            end = min(self._token_end(token, next_start), next_start)

            self._token(token, source[token.start:end], source[end:end + 1])
            if end < next_start:
                self._text(source[end:next_start])

            cursor = max(cursor, next_start)

        if cursor < len(source):
            self._text(source[cursor:])

        if self.style_start is not None:
            self._style_end('')

        return ''.join(self.out)

    def _token_end(self, token, next_start):
        if token.raw is not None:
            return token.start + len(token.raw)
        if token.kind == 'end':
            match = END_TAG_RE.match(self.source, token.start)
            if match:
                return match.end()
        return next_start

    # ===== Dispatch =====

    def _token(self, token, raw, lookahead=''):
        if self.removing is not None:
            self._skip(token)
            return

        if self.style_start is not None:
            if token.kind == 'end' and token.tag == 'style':
                self._style_end(raw)
            else:
                self.style_content.append(raw)
            return

        if self.in_script:
            if token.kind == 'end' and token.tag == 'script':
                self.in_script = False
            self.out.append(raw)
            return

        if token.kind in ('start', 'startend'):
            self._start_tag(token, raw)
        elif token.kind == 'end':
            # closing tags of removed elements without a start tag
            if not self.policy.removes(token.tag):
                self.out.append(raw)
        elif token.kind == 'data':
            self._text(raw, lookahead)
        elif not (self.policy.no_javascript and SCRIPT_IN_MARKUP_RE.search(raw)):
            # comments and declarations; conditional comments may hide a script
            self.out.append(raw)

    def _text(self, text, lookahead=''):
        if self.removing is not None:
            return
        if self.style_start is not None:
            self.style_content.append(text)
        elif self.in_script:
            self.out.append(text)
        else:
            # incomplete markup left over by the tokenizer is kept as text only;
            # a trailing '<' is markup when the next source character says so
            escaped = MARKUP_START_RE.sub('&lt;', text + lookahead)
            self.out.append(escaped[:len(escaped) - len(lookahead)])

    def _skip(self, token):
        tag, depth = self.removing
        if token.tag != tag:
            return
        if token.kind == 'start':
            self.removing[1] = depth + 1
        elif token.kind == 'end':
            if depth <= 1:
                self.removing = None
            else:
                self.removing[1] = depth - 1

    # ===== Tags =====

    def _start_tag(self, token, raw):
        tag = token.tag
        policy = self.policy

        if policy.removes(tag):
            self.out.append(policy.replacement_str)
            if token.kind == 'start' and tag not in VOID_ELEMENTS:
                self.removing = [tag, 1]
            return

        if tag == 'meta' and self._is_refresh(raw):
            return

        raw = self._sanitize_attributes(raw)

        if token.kind == 'start' and tag == 'style':
            self.style_start = raw
            self.style_content = []
            return

        if token.kind == 'start' and tag == 'script':
            self.in_script = True

        self.out.append(raw)

    def _style_end(self, end_tag):
        content = css.sanitize_stylesheet(''.join(self.style_content), self.policy)
        if content is not None:
            self.out.extend([self.style_start, content, end_tag])
        self.style_start = None
        self.style_content = []

    @staticmethod
    def _is_refresh(raw):
        for attribute in scan_attributes(raw):
            if attribute.name == 'http-equiv':
                value = uri.normalize(attribute_value(raw, attribute) or '')
                if value.lower() == 'refresh':
                    return True
        return False

    def _sanitize_attributes(self, raw):
        policy = self.policy
        edits = []

        for attribute in scan_attributes(raw):
            name = attribute.name

            if name.startswith('on') and policy.no_javascript:
                edits.append((attribute.start, attribute.end, ''))
                continue

            value = attribute_value(raw, attribute)
            if value is None:
                continue

            if name in URI_ATTRIBUTES:
                if policy.no_javascript and uri.is_script_uri(value):
                    blocked = True
                elif name in RESOURCE_ATTRIBUTES:
                    blocked = uri.is_blocked(
                        value,
                        no_ext_src_load=policy.no_ext_src_load,
                        no_int_src_load=policy.no_int_src_load,
                    )
                else:
                    blocked = False

                if blocked:
                    edits.append((attribute.quoted_start, attribute.quoted_end, '""'))

            elif name == 'style':
                sanitized = css.sanitize_style(value, policy)
                if sanitized != value:
                    edits.append((
                        attribute.quoted_start,
                        attribute.quoted_end,
                        f'"{html.escape(sanitized, quote=True)}"',
                    ))

        for start, end, replacement in reversed(edits):
            raw = raw[:start] + replacement + raw[end:]
        return raw


def safety(html_string, policy=None, **flags):
    """
    Filter untrusted HTML.

    Args:
        html_string: HTML fragment
        policy: SafetyPolicy; defaults to settings.HTML_SAFETY_POLICY
        **flags: SafetyPolicy fields overriding the defaults (only without policy)

    Returns:
        SafetyResult(string, replaced)
    """
    if policy is None:
        policy = SafetyPolicy.from_settings(**flags)
    elif flags:
        raise TypeError("Pass either a policy or flags, not both")

    return HTMLSafetyFilter(policy).filter(html_string)
