"""survey_server: FastAPI REST API for the survey runtime.

Exposes the RuntimeEngine as an HTTP API (start, answer, resume, end) with
admin endpoints for listing and clearing stored responses.
"""
