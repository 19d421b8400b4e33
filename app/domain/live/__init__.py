"""
Live teaching domain logic.

Includes:
- live_class: Class scheduling, join tokens and cloud recording.
"""
