"""CLI error handling.

Renders ``RuncoachError`` either as a rich one-liner for humans or as JSON
on stderr for scripts.
"""

import json
import sys
from typing import NoReturn

from rich.console import Console
from rich.text import Text

from runcoach.foundation.errors import ErrorCode, RuncoachError

_ICONS = {
    "model": "📈",
    "advisor": "🧭",
    "storage": "📁",
    "config": "⚙️",
    "runtime": "⚡",
}


def handle_error(error: Exception, json_output: bool = False) -> NoReturn:
    """Report an error and exit with status 1.

    Args:
        error: The error to report; non-runcoach errors are wrapped.
        json_output: Emit the error as JSON on stderr.

    Raises:
        SystemExit: Always exits with code 1
    """
    if not isinstance(error, RuncoachError):
        error = RuncoachError(
            code=ErrorCode.RUNTIME_STATE_INVALID,
            context={"detail": str(error)},
            cause=error,
        )

    if json_output:
        error_dict = error.to_dict()
        if error.cause:
            error_dict["cause"] = str(error.cause)
        print(json.dumps(error_dict), file=sys.stderr)
        sys.exit(1)

    console = Console(stderr=True)
    header = Text()
    header.append(f"{_ICONS.get(error.category, '❌')} ", style="bold")
    header.append(error.error_id, style="bold red")
    header.append(f" {error.message}")
    console.print(header)
    sys.exit(1)
