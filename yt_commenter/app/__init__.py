"""
Application Package
Configuration, database wiring, dependency providers and the FastAPI app
"""
