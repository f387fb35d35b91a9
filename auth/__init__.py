"""auth/ -- Authentication and authorization package for Taskboard.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or tasks/ (tasks.models is used for typing only).
api/ imports from auth/, not the other way around.
"""
