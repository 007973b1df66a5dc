# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

This package contains domain services that wrap the pure engine with
store access, concurrency and error translation.

Domains:
    adaptive: Adaptive feedback queries and progress updates.
"""
