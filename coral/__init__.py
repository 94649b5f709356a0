"""Coral — staged image gallery pipeline."""
