"""FastAPI service exposing the prompt optimizer."""
