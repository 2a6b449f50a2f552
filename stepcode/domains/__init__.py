# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain packages for StepCode.

- curriculum: content models, loader, lesson status and progress
- practice: per-problem stage sessions
- learning: lesson stage flow and Gap Filler review
- user: learner profile
- auth: sign-in, sign-up and verification
"""
