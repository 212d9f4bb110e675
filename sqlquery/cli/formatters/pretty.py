"""
Rich formatter for highlighted terminal output
"""

import json
from typing import Any, Dict

from rich.console import Console
from rich.json import JSON
from rich.panel import Panel

from sqlquery.cli.formatters.base import BaseFormatter


class PrettyFormatter(BaseFormatter):
    """Format documents as syntax-highlighted JSON in a panel"""

    def format(self, document: Dict[str, Any], **kwargs) -> str:
        """
        Format a document with Rich

        Args:
            document: Query document
            **kwargs: Options like 'no_color', 'title', 'indent'

        Returns:
            Rendered string
        """
        no_color = kwargs.get("no_color", False)
        console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            color_system=None if no_color else "auto",
        )
        body = JSON(json.dumps(document), indent=kwargs.get("indent", 2))
        title = kwargs.get("title", "Query document")

        with console.capture() as capture:
            console.print(Panel(body, title=title, title_align="left", expand=False))

        return capture.get()
