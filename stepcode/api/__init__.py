# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP surface for StepCode.

Example:
    >>> from stepcode.api import create_app
    >>> app = create_app()
"""

from stepcode.api.app import create_app

__all__ = ["create_app"]
