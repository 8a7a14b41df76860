"""Entry point for `python -m volcboard`.

Usage:
    python -m volcboard
    uv run python -m volcboard
"""

from __future__ import annotations

import asyncio

from volcboard.app import main

asyncio.run(main())
