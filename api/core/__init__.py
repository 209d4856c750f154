"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(DB wiring, settings, request binding, errors, uploads). Keep
feature-specific schemas and collaborator interfaces in the corresponding
feature package (e.g. `worlds/`).
"""
