import uvicorn

from app.core.config import get_settings
from app.main import app

settings = get_settings()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG_MODE)
