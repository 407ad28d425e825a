"""Query text resolution for the ``query`` command.

Sources, highest priority first: inline ``-e`` text, a file path, stdin.
"""

from __future__ import annotations

import sys
from pathlib import Path

from sqlbridge.core.exceptions import MalformedInputError


def resolve_query_source(inline: str | None, file_path: str | None) -> str:
    """Return the SQL to run.

    Raises MalformedInputError when no source is available or the result
    is blank.
    """
    if inline is not None:
        sql = inline
    elif file_path is not None:
        p = Path(file_path)
        if not p.is_file():
            msg = (
                f"Query file not found: {file_path}\n"
                "Use -e for inline queries or pipe query via stdin."
            )
            raise MalformedInputError(msg)
        sql = p.read_text()
    elif not sys.stdin.isatty():
        sql = sys.stdin.read()
    else:
        raise MalformedInputError("No query provided. Use -e, file path, or pipe to stdin.")

    if not sql.strip():
        raise MalformedInputError("Query is empty")
    return sql
