"""
Nucleus Backend - FastAPI Application Entry Point
"""

import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from routers import chat, config, diff, session
from services.config_manager import ConfigManager

CONVERSATIONS_IGNORE_ENTRY = ".nucleus/conversations/"


def ensure_gitignore_entry(notes_dir: str | Path, entry: str = CONVERSATIONS_IGNORE_ENTRY) -> bool:
    """Append entry to the notes repo's .gitignore unless present. Returns True if written."""
    gitignore_path = Path(notes_dir) / ".gitignore"
    existing = gitignore_path.read_text(encoding="utf-8") if gitignore_path.exists() else ""
    if any(line.strip() == entry for line in existing.split("\n")):
        return False

    separator = "\n" if existing and not existing.endswith("\n") else ""
    gitignore_path.write_text(existing + separator + entry + "\n", encoding="utf-8")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logic"""
    print("[Backend] Starting Nucleus Backend...")
    config = ConfigManager.get_instance().get_config()
    print("[Backend] ConfigManager initialized")

    notes_dir = config.get("notesDir")
    if notes_dir:
        print(f"[Backend] Notes directory: {notes_dir}")
        try:
            if ensure_gitignore_entry(notes_dir):
                print(f"[Backend] Added {CONVERSATIONS_IGNORE_ENTRY} to target repo .gitignore")
        except OSError as e:
            print(f"[Backend] Could not update .gitignore: {e}")
    else:
        print("[Backend] NOTES_DIR is not set. Set it in .env or as an environment variable")

    yield
    print("[Backend] Shutting down Nucleus Backend...")


app = FastAPI(
    title="Nucleus Backend",
    description="Chat agent that organizes a git repository of markdown notes",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for the Vite dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # single-user tool running locally
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
app.include_router(diff.router, prefix="/api/diff", tags=["diff"])
app.include_router(session.router, prefix="/api", tags=["session"])
app.include_router(config.router, prefix="/api/config", tags=["config"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    config = ConfigManager.get_instance().get_config()
    return {
        "ok": True,
        "notesDir": config.get("notesDir") or None,
        "hasApiKey": bool(config.get("apiKey")),
        "model": config.get("model"),
    }


# In production, serve the built front-end (SPA fallback via html=True)
if os.environ.get("NODE_ENV") == "production" and Path("dist").is_dir():
    app.mount("/", StaticFiles(directory="dist", html=True), name="static")


if __name__ == "__main__":
    import uvicorn

    server = ConfigManager.get_instance().get_config()["server"]
    uvicorn.run(app, host=server["host"], port=server["port"])
