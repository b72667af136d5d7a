"""Burial permits submitted by the external permit system."""
