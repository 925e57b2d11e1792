"""Decision history."""
