"""Eligibility rules deciding what gets sent to Akismet."""
