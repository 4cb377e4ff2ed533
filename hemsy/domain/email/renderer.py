"""
Template renderer
Substitutes {name} placeholders; unknown or missing variables never break delivery
"""

import html
import logging
import re
from typing import NamedTuple, Optional

from .constants import EMAIL_VARIABLES
from .kinds import EmailType, parse_email_type

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")


class RenderedEmail(NamedTuple):
    subject: str
    body: str


class TemplateRenderer:
    """Stateless renderer for subject/body templates"""

    def render(self, template, data: dict, escape_html: bool = False) -> RenderedEmail:
        """
        Render a template with provided data.

        A placeholder whose key is absent from ``data`` is left verbatim in the
        output so a misconfigured template degrades visibly instead of failing.
        """
        email_type = getattr(template, "email_type", None)
        if email_type is not None:
            self._warn_on_mismatch(template, email_type, data)

        return RenderedEmail(
            subject=self._render_string(template.subject, data, escape_html),
            body=self._render_string(template.body, data, escape_html),
        )

    def render_preview(self, template, email_type) -> RenderedEmail:
        """Render a template with the email type's sample data"""
        sample = self.get_sample_data(email_type)
        return RenderedEmail(
            subject=self._render_string(template.subject, sample, False),
            body=self._render_string(template.body, sample, False),
        )

    def extract_variables(self, text: str) -> list[str]:
        """Distinct placeholder names in first-seen order"""
        seen = []
        for name in PLACEHOLDER_PATTERN.findall(text or ""):
            if name not in seen:
                seen.append(name)
        return seen

    def validate_template(self, template, email_type) -> dict:
        """Flag placeholders that are not in the email type's allow-list"""
        errors = []
        allowed = self.get_allowed_variables(email_type)

        used = self.extract_variables(template.subject)
        for name in self.extract_variables(template.body):
            if name not in used:
                used.append(name)

        unknown = [v for v in used if v not in allowed]
        if unknown:
            errors.append(
                f"Unknown variables: {', '.join(unknown)}. "
                f"Allowed variables: {', '.join(allowed)}"
            )

        return {"valid": not errors, "errors": errors}

    def get_allowed_variables(self, email_type) -> list[str]:
        config = self._config(email_type)
        return [v["key"] for v in config["variables"]] if config else []

    def get_sample_data(self, email_type) -> dict:
        config = self._config(email_type)
        return dict(config["sample_data"]) if config else {}

    def get_variable_help(self, email_type) -> list[dict]:
        config = self._config(email_type)
        return [dict(v) for v in config["variables"]] if config else []

    # Private methods

    @staticmethod
    def _config(email_type) -> Optional[dict]:
        kind = email_type if isinstance(email_type, EmailType) else parse_email_type(email_type)
        return EMAIL_VARIABLES.get(kind) if kind else None

    @staticmethod
    def _render_string(text: str, data: dict, escape_html: bool) -> str:
        def replace(match):
            key = match.group(1)
            if key not in data or data[key] is None:
                return match.group(0)
            value = str(data[key])
            return html.escape(value) if escape_html else value

        return PLACEHOLDER_PATTERN.sub(replace, text)

    def _warn_on_mismatch(self, template, email_type, data: dict) -> None:
        allowed = self.get_allowed_variables(email_type)
        used = self.extract_variables(template.subject) + self.extract_variables(template.body)

        missing = sorted({v for v in used if data.get(v) is None})
        if missing:
            logger.warning(f"⚠️ Missing variables for {getattr(email_type, 'value', email_type)}: {', '.join(missing)}")

        unknown = sorted({v for v in used if v not in allowed})
        if unknown:
            logger.warning(f"⚠️ Unknown variables in {getattr(email_type, 'value', email_type)} template: {', '.join(unknown)}")
