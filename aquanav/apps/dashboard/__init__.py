"""Headline figures for the landing page."""
