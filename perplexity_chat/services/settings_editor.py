"""Apply settings-panel edits to an ApiSettings record"""

import json
import logging
import re
from dataclasses import replace
from typing import List, Optional

from ..errors import InvalidSchemaInput
from ..models.api_models import ApiSettings, JsonSchemaFormat, RegexFormat, ResponseFormat

logger = logging.getLogger(__name__)

OUTPUT_TYPES = ("none", "json", "regex")


def parse_domain_filter(text: str) -> Optional[List[str]]:
    """Split a comma separated domain list; an empty field clears the filter"""
    domains = [part.strip() for part in text.split(",") if part.strip()]
    return domains or None


def build_response_format(output_type: str, value: str = "") -> Optional[ResponseFormat]:
    """Turn a structured-output selection into a response format

    Args:
        output_type: One of ``none``, ``json`` or ``regex``
        value: JSON schema text or regex pattern

    Returns:
        The constraint, or None when no constraint is selected or the value is empty

    Raises:
        InvalidSchemaInput: If the schema is not a JSON object or the regex does not compile
    """
    if output_type not in OUTPUT_TYPES:
        raise InvalidSchemaInput(f"Unknown structured output type '{output_type}'")
    if output_type == "none" or not value.strip():
        return None
    if output_type == "json":
        try:
            schema = json.loads(value)
        except ValueError as e:
            raise InvalidSchemaInput(f"Invalid JSON schema: {e}") from e
        if not isinstance(schema, dict):
            raise InvalidSchemaInput("JSON schema must be an object")
        return JsonSchemaFormat(schema=schema)
    try:
        re.compile(value)
    except re.error as e:
        raise InvalidSchemaInput(f"Invalid regex: {e}") from e
    return RegexFormat(regex=value)


class SettingsEditor:
    """Holds the current settings and applies edits that keep them valid"""

    def __init__(self, settings: ApiSettings):
        self.settings = settings

    def update(self, **changes) -> ApiSettings:
        """Apply field changes; invalid combinations are rejected and logged"""
        try:
            candidate = replace(self.settings, **changes).validate()
        except (TypeError, ValueError) as e:
            logger.warning("Rejected settings change %s: %s", changes, e)
            return self.settings
        self.settings = candidate
        return self.settings

    def edit_structured_output(self, output_type: str, value: str = "") -> ApiSettings:
        """Apply a structured-output edit, leaving settings unchanged when the input does not parse"""
        try:
            response_format = build_response_format(output_type, value)
        except InvalidSchemaInput as e:
            logger.warning("%s", e)
            return self.settings
        self.settings = replace(self.settings, response_format=response_format)
        return self.settings
