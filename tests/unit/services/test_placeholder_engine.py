"""
Unit tests for the placeholder engine.

WHAT: {{key}}, #{key} and {key} substitution and text-to-HTML.

WHY: Invoice emails are user-written templates; a wrong substitution
goes straight to a client's inbox.
"""

from app.services.placeholder_engine import render_placeholders, text_to_html


class TestRenderPlaceholders:
    """Tests for render_placeholders."""

    def test_all_three_styles(self):
        result = render_placeholders(
            "{{client_name}} / #{client_name} / {client_name}",
            {"client_name": "Acme"},
        )
        assert result == "Acme / Acme / Acme"

    def test_whitespace_inside_braces(self):
        assert render_placeholders("Total: {{ total }}", {"total": "$10.00"}) == "Total: $10.00"

    def test_unknown_tokens_left_as_written(self):
        result = render_placeholders("Hi {{name}}, ref {{ref}} and {other}", {"name": "Jo"})
        assert result == "Hi Jo, ref {{ref}} and {other}"

    def test_none_renders_empty(self):
        assert render_placeholders("[{{terms}}]", {"terms": None}) == "[]"

    def test_values_are_not_rescanned(self):
        """A value that looks like a token stays literal."""
        result = render_placeholders(
            "{{a}} {{b}}",
            {"a": "{{b}}", "b": "B"},
        )
        assert result == "{{b}} B"

    def test_longer_key_wins_over_prefix(self):
        result = render_placeholders(
            "{{client}} {{client_name}}",
            {"client": "C", "client_name": "Acme"},
        )
        assert result == "C Acme"

    def test_regex_characters_in_values(self):
        assert render_placeholders("{{amount}}", {"amount": r"$1\2 (x)"}) == r"$1\2 (x)"

    def test_empty_inputs(self):
        assert render_placeholders("", {"x": "1"}) == ""
        assert render_placeholders(None, {"x": "1"}) == ""
        assert render_placeholders("{{x}}", {}) == "{{x}}"
        assert render_placeholders("{{x}}", None) == "{{x}}"

    def test_non_string_values(self):
        assert render_placeholders("#{n}", {"n": 42}) == "42"

    def test_repeated_tokens(self):
        assert render_placeholders("{x}{x}{x}", {"x": "ab"}) == "ababab"


class TestTextToHtml:
    """Tests for text_to_html."""

    def test_newlines_become_breaks(self):
        assert text_to_html("a\nb\r\nc") == "a<br>b<br>c"

    def test_empty(self):
        assert text_to_html("") == ""
        assert text_to_html(None) == ""

    def test_markup_kept(self):
        assert text_to_html("<b>Due</b>\nnow") == "<b>Due</b><br>now"
