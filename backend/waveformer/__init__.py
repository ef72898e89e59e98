"""Waveform peaks job service."""
