# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API Routes package."""

from stepcode.api.routes import admin, health

__all__ = ["admin", "health"]
