# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for StepCode.

This package contains the core runtime and shared configuration:
- config: Application configuration and settings
- execution: Interactive script runners and execution sessions
- intelligence: LLM client and AI tutor adapter
"""
