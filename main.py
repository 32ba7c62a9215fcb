# Entry point for running from the repository root
# Exposes the FastAPI app from the app package

from app.main import app

# uvicorn main:app --host 0.0.0.0 --port 8001
