# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package.

This package contains the core business logic and shared utilities:
- config: Application configuration and settings
- adaptive: Stateless adaptive feedback computations
"""
