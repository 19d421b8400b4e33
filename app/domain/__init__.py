"""
Domain layer containing core business logic and domain services.

Submodules:
- identity: Registration, login, sessions and issued identifiers.
- academic: Departments, courses and lecturer unit assignments.
- live: Live classes, join tokens and cloud recording.
- utils: Domain-specific utilities (e.g., ID generation).
"""
