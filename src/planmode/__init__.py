"""planmode: versioned plans, rules, and prompts installed into your project."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
