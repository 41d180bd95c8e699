from django.test import SimpleTestCase, override_settings

from core.html_safety import HTMLSafetyFilter, SafetyPolicy, safety
from core.html_safety.safety import scan_attributes


class SafetyFilterTests(SimpleTestCase):
    """Tests for the HTML safety filter with the default policy"""

    def assertFiltered(self, source, expected, **flags):
        result = safety(source, **flags)
        self.assertEqual(result.string, expected)
        self.assertEqual(result.replaced, source != expected)
        # filtering the output again changes nothing
        self.assertEqual(safety(result.string, **flags), (result.string, False))

    def test_javascript_href(self):
        self.assertFiltered('<a href="javascript:alert(1)">x</a>', '<a href="">x</a>')
        self.assertFiltered('<a href=javascript:alert(1)>x</a>', '<a href="">x</a>')
        self.assertFiltered("<a href='vbscript:msgbox(1)'>x</a>", '<a href="">x</a>')

    def test_safe_html_is_untouched(self):
        source = '<b>Some Text</b>'
        self.assertEqual(safety(source), (source, False))

        source = '<p class=intro  title="a &amp; b">1 < 2 &amp; <i>3</i></p>\n<br/>'
        self.assertEqual(safety(source), (source, False))

    def test_empty_input(self):
        self.assertEqual(safety(''), ('', False))
        self.assertEqual(safety(None), ('', False))

    def test_script_elements(self):
        self.assertFiltered('Hello <script>alert(1)</script>World', 'Hello World')
        self.assertFiltered('<SCRIPT type="text/javascript">alert(1)</SCRIPT>ok', 'ok')
        self.assertFiltered('<p>\n<script>\nalert(1)\n</script>\n</p>', '<p>\n\n</p>')
        self.assertFiltered('<p>a</p><script>alert(1)', '<p>a</p>')

    def test_stray_end_tags_are_removed(self):
        self.assertFiltered('a</script>b</object>c', 'abc')

    def test_replacement_string(self):
        self.assertFiltered(
            'Hello <script>alert(1)</script>World', 'Hello [removed]World',
            replacement_str='[removed]',
        )

    def test_plugin_elements(self):
        self.assertFiltered('<p>a<object data="x.swf"><param name="m"></object>b</p>', '<p>ab</p>')
        self.assertFiltered('<applet code="Evil.class"></applet>ok', 'ok')
        self.assertFiltered('<embed src="x.swf">after', 'after')
        self.assertFiltered('<svg><script>alert(1)</script></svg>ok', 'ok')

    def test_nested_elements_of_the_same_tag(self):
        self.assertFiltered('<object><object></object>inner</object>outer', 'outer')

    def test_plugin_flags(self):
        source = '<object data="movie.swf"></object>'
        self.assertFiltered(source, source, no_object=False)
        self.assertFiltered('<svg><circle r="1"/></svg>', '<svg><circle r="1"/></svg>', no_svg=False)

    def test_event_handlers(self):
        self.assertFiltered('<img src="a.png" onerror="alert(1)">', '<img src="a.png">')
        self.assertFiltered('<img src=a.png onerror=alert(1)>', '<img src=a.png>')
        self.assertFiltered("<img onerror='alert(1)' src=a.png>", '<img src=a.png>')
        self.assertFiltered('<img/onerror=alert(1) src=x>', '<img src=x>')
        self.assertFiltered('<body ONLOAD="init()">x</body>', '<body>x</body>')

    def test_obfuscated_schemes(self):
        self.assertFiltered('<a href="javasc&#x72ipt:alert(1)">x</a>', '<a href="">x</a>')
        self.assertFiltered('<a href="java&#x0A;script:alert(1)">x</a>', '<a href="">x</a>')
        self.assertFiltered('<a href=" java\tscript:alert(1)">x</a>', '<a href="">x</a>')
        self.assertFiltered('<IMG SRC="jav&#x09;ascript:alert(1)">', '<IMG SRC="">')

    def test_data_attributes_are_not_uris(self):
        source = '<img data-src="javascript:alert(1)" src="a.png">'
        self.assertEqual(safety(source), (source, False))

    def test_src_load_flags(self):
        source = '<img src="http://example.com/a.png"><img src="/local.png">'
        self.assertFiltered(
            source, '<img src=""><img src="/local.png">', no_ext_src_load=True,
        )
        self.assertFiltered(
            source, '<img src="http://example.com/a.png"><img src="">', no_int_src_load=True,
        )
        self.assertFiltered(
            '<img src="//cdn.example.com/a.png">', '<img src="">', no_ext_src_load=True,
        )

    def test_src_load_flags_ignore_links(self):
        source = '<a href="http://example.com/">x</a><img src="cid:part1">'
        self.assertEqual(
            safety(source, no_ext_src_load=True, no_int_src_load=True),
            (source, False)
        )

    def test_style_blocks(self):
        self.assertFiltered(
            '<style>p { width: expression(alert(1)); }</style><p>x</p>', '<p>x</p>',
        )
        source = '<style>p { color: red; }</style><p>x</p>'
        self.assertEqual(safety(source), (source, False))
        self.assertFiltered(
            '<style>body { background: url(http://example.com/a.png); }</style>',
            '<style>body { background: ; }</style>',
            no_ext_src_load=True,
        )

    def test_inline_styles(self):
        self.assertFiltered(
            '<div style="width: expression(alert(1)); color: red">x</div>',
            '<div style="width: ; color: red">x</div>',
        )
        self.assertFiltered(
            '<div style="width: expr/**/ession(alert(1))">x</div>',
            '<div style="">x</div>',
        )
        self.assertFiltered(
            '<div style="background: url(\'javascript:alert(1)\')">x</div>',
            '<div style="background: ">x</div>',
        )
        source = '<div style="color: red; background: url(/bg.png)">x</div>'
        self.assertEqual(safety(source), (source, False))

    def test_meta_refresh(self):
        self.assertFiltered('<meta http-equiv="refresh" content="0; url=http://evil/">text', 'text')
        self.assertFiltered('<meta http-equiv=" Refresh " content="0">', '')
        source = '<meta charset="utf-8">'
        self.assertEqual(safety(source), (source, False))

    def test_comments(self):
        self.assertFiltered('<!--[if IE]><script>alert(1)</script><![endif]-->ok', 'ok')
        source = '<!-- note --><p>x</p>'
        self.assertEqual(safety(source), (source, False))

    def test_javascript_allowed(self):
        source = '<a href="javascript:void(0)" onclick="go()">x</a><script>go()</script>'
        self.assertEqual(safety(source, no_javascript=False), (source, False))

    def test_incomplete_markup_is_escaped(self):
        result = safety('text <script')
        self.assertNotIn('<script', result.string)
        self.assertEqual(safety(result.string).replaced, False)


class SafetyPolicyTests(SimpleTestCase):
    """Tests for SafetyPolicy and the safety() entry point"""

    def test_defaults(self):
        policy = SafetyPolicy()
        self.assertTrue(policy.no_javascript)
        self.assertFalse(policy.no_ext_src_load)
        self.assertTrue(policy.removes('svg'))
        self.assertFalse(policy.removes('p'))

    def test_unknown_flag(self):
        with self.assertRaises(TypeError):
            safety('<b>x</b>', no_iframes=True)

    def test_policy_and_flags_are_exclusive(self):
        with self.assertRaises(TypeError):
            safety('<b>x</b>', policy=SafetyPolicy(), no_svg=False)

    def test_explicit_policy(self):
        policy = SafetyPolicy(no_ext_src_load=True, replacement_str='-')
        result = HTMLSafetyFilter(policy).filter('<img src="https://x.org/a.png"><embed src="a">')
        self.assertEqual(result.string, '<img src="">-')

    @override_settings(HTML_SAFETY_POLICY={'no_ext_src_load': True})
    def test_settings_defaults(self):
        self.assertEqual(safety('<img src="http://x.org/a.png">').string, '<img src="">')
        self.assertEqual(
            safety('<img src="http://x.org/a.png">', no_ext_src_load=False).string,
            '<img src="http://x.org/a.png">'
        )


class ScanAttributesTests(SimpleTestCase):
    """Tests for the raw attribute scanner"""

    def test_attribute_spans(self):
        tag = '<a href="x" title=y checked/onclick=\'z\'>'
        attributes = scan_attributes(tag)
        self.assertEqual([a.name for a in attributes], ['href', 'title', 'checked', 'onclick'])
        self.assertEqual(tag[attributes[0].quoted_start:attributes[0].quoted_end], '"x"')
        self.assertEqual(tag[attributes[1].value_start:attributes[1].value_end], 'y')
        self.assertIsNone(attributes[2].value_start)
        self.assertEqual(tag[attributes[3].start:attributes[3].end], "/onclick='z'")

    def test_unterminated_quote(self):
        attributes = scan_attributes('<a href="x>')
        self.assertEqual(attributes[0].name, 'href')
