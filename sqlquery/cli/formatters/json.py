"""
JSON formatter for machine-readable output
"""

import json
from typing import Any, Dict

from sqlquery.cli.formatters.base import BaseFormatter


class JSONFormatter(BaseFormatter):
    """Format documents as JSON"""

    def format(self, document: Dict[str, Any], **kwargs) -> str:
        """
        Format a document as JSON

        Args:
            document: Query document
            **kwargs: Options like 'compact', 'indent'

        Returns:
            JSON string
        """
        if kwargs.get("compact", False):
            return json.dumps(document, separators=(",", ":"))
        return json.dumps(document, indent=kwargs.get("indent", 2))
