"""Paired session domain services: lifecycle, countdown, clock and links.

This package contains the coordination logic imported by HTTP routes and
socket handlers, keeping transport concerns separated from the session
state machine.
"""
