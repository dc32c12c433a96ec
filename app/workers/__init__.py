"""
Command line entry points.

This module contains:
- server_cli: ``plantcare-server``, serves the watering API
- local_cli: ``plantcare-local``, guest-mode scheduling over device-local storage
"""
