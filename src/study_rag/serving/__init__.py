"""
Serving — FastAPI application for the study-tool UI.

The browser UI uploads notes, lists and deletes documents, and asks
grounded questions through this thin HTTP layer.
"""
