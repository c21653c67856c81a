"""Run the ReviewFlow API service."""

from pathlib import Path
import sys
import uvicorn


if __name__ == "__main__":
    # Ensure `backend/` is on sys.path so `reviewflow.*` imports work without an install
    backend_dir = Path(__file__).resolve().parent
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))

    uvicorn.run("reviewflow.main:app", host="0.0.0.0", port=8000, reload=True)
