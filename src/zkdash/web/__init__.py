"""FastAPI view of the dashboard."""
