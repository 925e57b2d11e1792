"""Moderation cases opened for suspected spam."""
