import pytest

from hemsy.domain.email.kinds import EmailType
from hemsy.domain.email.renderer import TemplateRenderer
from hemsy.domain.email.templates import Template, get_template


@pytest.fixture
def renderer():
    return TemplateRenderer()


def template(subject, body, email_type=EmailType.APPOINTMENT_SCHEDULED):
    return Template(email_type, subject, body)


class TestRender:
    def test_substitutes_every_occurrence(self, renderer):
        rendered = renderer.render(
            template("Hi {client_name}", "{client_name}, see you at {shop_name}. Bye {client_name}"),
            {"client_name": "Jane", "shop_name": "Sarah's"},
        )

        assert rendered.subject == "Hi Jane"
        assert rendered.body == "Jane, see you at Sarah's. Bye Jane"

    def test_missing_variable_is_left_verbatim(self, renderer):
        rendered = renderer.render(template("Hi {client_name}", "At {appointment_time}"), {"client_name": "Jane"})

        assert rendered.body == "At {appointment_time}"

    def test_none_value_is_left_verbatim(self, renderer):
        rendered = renderer.render(template("Hi {client_name}", ""), {"client_name": None})

        assert rendered.subject == "Hi {client_name}"

    def test_unknown_placeholder_renders_and_warns(self, renderer, caplog):
        rendered = renderer.render(template("Hi", "Code {promo_code}"), {"promo_code": "HEM10"})

        assert rendered.body == "Code HEM10"
        assert "Unknown variables" in caplog.text

    def test_values_are_stringified(self, renderer):
        rendered = renderer.render(template("{n} items", ""), {"n": 3})

        assert rendered.subject == "3 items"

    def test_html_escaping_is_opt_in(self, renderer):
        t = template("", "Hello {client_name}")
        data = {"client_name": "<b>Jane</b>"}

        assert renderer.render(t, data).body == "Hello <b>Jane</b>"
        assert renderer.render(t, data, escape_html=True).body == "Hello &lt;b&gt;Jane&lt;/b&gt;"

    def test_non_word_braces_are_untouched(self, renderer):
        rendered = renderer.render(template("", "{ client_name } {client-name}"), {"client_name": "Jane"})

        assert rendered.body == "{ client_name } {client-name}"

    def test_every_default_template_renders_with_its_sample_data(self, renderer):
        for email_type in EmailType:
            rendered = renderer.render_preview(get_template(email_type), email_type)

            assert renderer.extract_variables(rendered.subject) == []
            assert renderer.extract_variables(rendered.body) == []


class TestExtractVariables:
    def test_distinct_in_first_seen_order(self, renderer):
        assert renderer.extract_variables("{b} {a} {b} {c} {a}") == ["b", "a", "c"]

    def test_no_placeholders(self, renderer):
        assert renderer.extract_variables("plain text") == []


class TestValidateTemplate:
    def test_default_templates_are_valid(self, renderer):
        for email_type in EmailType:
            assert renderer.validate_template(get_template(email_type), email_type) == {
                "valid": True,
                "errors": [],
            }

    def test_unknown_variable_is_reported_with_allow_list(self, renderer):
        result = renderer.validate_template(
            template("Hi {client_name}", "{promo_code}"), EmailType.APPOINTMENT_REMINDER
        )

        assert result["valid"] is False
        [error] = result["errors"]
        assert error.startswith("Unknown variables: promo_code. Allowed variables: client_name")

    def test_confirmation_link_is_only_allowed_where_sent(self, renderer):
        result = renderer.validate_template(
            template("", "{confirmation_link}"), EmailType.APPOINTMENT_NO_SHOW
        )

        assert result["valid"] is False

    def test_variable_help_for_unknown_type_is_empty(self, renderer):
        assert renderer.get_variable_help("appointment_birthday") == []
        assert renderer.get_allowed_variables("appointment_birthday") == []
