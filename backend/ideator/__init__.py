"""Business ideator: market research in, validated and ranked business ideas out."""

__version__ = "0.1.0"
