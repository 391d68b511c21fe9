"""Foundation utilities - generic helpers with no runcoach dependencies.

- Math (sigmoid, logit, clamp)
- Path operations (sanitize_filename, run_file_name)
- Serialization (safe_json_load, safe_json_dump)
- Time formatting (format_duration)
"""

from runcoach.foundation.utils.math import clamp, logit, sigmoid, sigmoid_array
from runcoach.foundation.utils.paths import run_file_name, sanitize_filename
from runcoach.foundation.utils.serialization import safe_json_dump, safe_json_load
from runcoach.foundation.utils.timefmt import format_duration

__all__ = [
    # Math utilities
    "clamp",
    "logit",
    "sigmoid",
    "sigmoid_array",
    # Path utilities
    "run_file_name",
    "sanitize_filename",
    # Serialization utilities
    "safe_json_dump",
    "safe_json_load",
    # Formatting utilities
    "format_duration",
]
