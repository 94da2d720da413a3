import uvicorn
from orderdesk.core.config import settings


def main():
    """Start the FastAPI backend server."""
    uvicorn.run("orderdesk.main:app", host=settings.HOST, port=settings.PORT, reload=True)


if __name__ == "__main__":
    main()
