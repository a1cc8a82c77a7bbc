"""
Run the service as a module: python -m makeup_backend
"""
from .config import get_settings

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("makeup_backend.main:app", host=settings.host, port=settings.port, reload=False)
