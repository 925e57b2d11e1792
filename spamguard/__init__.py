"""SpamGuard: screens forum posts and profile bios against Akismet."""

__version__ = "0.1.0"
