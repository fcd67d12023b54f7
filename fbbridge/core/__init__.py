# SPDX-License-Identifier: MIT
"""Core types: planner actions, option parsing, graph ordering, errors."""
