"""Akismet screening of posts and user bios."""
