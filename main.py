"""
Root entrypoint: run with:
    uvicorn main:app --reload

Apply migrations first:  alembic upgrade head
"""

from app.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
