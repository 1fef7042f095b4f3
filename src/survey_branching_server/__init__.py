"""survey_branching_server — FastAPI REST API for the branching engine.

Exposes logic evaluation, flow state, integrity validation and flow maps,
plus minimal participation endpoints that record answers and apply their
navigation effects.
"""
