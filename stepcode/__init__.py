"""StepCode core.

Gamified coding-education platform core: an interactive script runner with
suspendable input, per-problem practice sessions, and lesson progression with
mastery tracking and Gap Filler review.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
