"""Adaptive Feedback Engine.

Turns learner interaction telemetry and answer history into adaptive
signals and recommendations for a children's math-learning product.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
