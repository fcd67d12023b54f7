# SPDX-License-Identifier: MIT
"""FASTBuild settings."""
