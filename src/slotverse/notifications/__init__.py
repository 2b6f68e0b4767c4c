"""Outbound completion messages.

Sub-modules:
- ``messages``  : success/failure text and remediation hints
- ``discord``   : interaction follow-up webhook delivery
- ``telegram``  : Bot API ``sendMessage`` delivery
- ``dispatcher``: routes a finished job to its platform, never raises
"""
