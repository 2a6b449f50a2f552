# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Compile-and-run service client."""

from stepcode.infrastructure.compiler.client import CompileResult, CompileServiceClient

__all__ = [
    "CompileResult",
    "CompileServiceClient",
]
