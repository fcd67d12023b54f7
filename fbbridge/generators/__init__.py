# SPDX-License-Identifier: MIT
"""Build description generators for fbbridge."""

from fbbridge.generators.bff import BffGenerator
from fbbridge.generators.generator import BaseGenerator, GenerateResult, Generator

__all__ = [
    "BaseGenerator",
    "BffGenerator",
    "GenerateResult",
    "Generator",
]
