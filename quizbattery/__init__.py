"""Application package for the quiz battery backend.

The battery engine (`battery`, `versioning`, `schedule`, `utils.rng`)
is pure and works on the pydantic values in `schemas`. The service,
repository and model modules wrap it for the FastAPI application.
"""
