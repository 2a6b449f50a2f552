# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure adapters for StepCode.

- persistence: ProfileStore interface and in-memory store
- supabase: Supabase auth/database store
- compiler: compile-and-run service client
"""
