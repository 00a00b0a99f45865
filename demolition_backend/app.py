import logging
from pathlib import Path
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

# AI Logic
from demolition_backend.ai.agent_nodes import EstimationClient
from demolition_backend.ai.final_graph import EstimationPipeline
# Session Logic
from demolition_backend.config import Settings, get_settings
from demolition_backend.session.machine import Pipeline, PresentationStateMachine, SessionSnapshot

logger = logging.getLogger(__name__)

# --- CONFIGURATION ---
STATIC_DIR = Path(__file__).resolve().parent / "static"


def _log_transition(snapshot: SessionSnapshot) -> None:
    logger.debug("Session now %s with %d image(s)", snapshot.phase.value, len(snapshot.images))


def create_app(settings: Optional[Settings] = None, pipeline: Optional[Pipeline] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if pipeline is None:
        pipeline = EstimationPipeline(EstimationClient(settings))
        if settings.needs_api_key and not settings.api_key:
            # reported on each estimate request, app start is not blocked
            logger.warning("GEMINI_API_KEY is not set; estimates will fail until it is configured.")

    app = FastAPI(title="Demolition Survey AI")
    app.state.machine = PresentationStateMachine(pipeline)
    app.state.machine.subscribe(_log_transition)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    def machine_of(request: Request) -> PresentationStateMachine:
        return request.app.state.machine

    @app.get("/")
    def index():
        """Serves the single-page upload UI."""
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/state")
    def get_state(request: Request):
        """Returns the current session: images, phase, result and error."""
        return machine_of(request).snapshot().to_dict()

    @app.post("/images")
    async def upload_images(request: Request, files: List[UploadFile] = File(...)):
        """
        Adds the uploaded files to the preview collection.
        Files that are not readable images are skipped; anything beyond
        10 images in total is dropped.
        """
        machine = machine_of(request)
        if machine.is_loading:
            raise HTTPException(status_code=409, detail="An estimate is in progress.")

        result = await machine.submit_files(files)
        return {
            "accepted": len(result.accepted),
            "dropped": result.dropped,
            "skipped": list(result.skipped),
            "state": machine.snapshot().to_dict(),
        }

    @app.delete("/images/{image_id}")
    def delete_image(request: Request, image_id: str):
        machine = machine_of(request)
        if machine.is_loading:
            raise HTTPException(status_code=409, detail="An estimate is in progress.")
        machine.remove_image(image_id)
        return machine.snapshot().to_dict()

    @app.post("/estimate")
    async def estimate(request: Request):
        """Runs the estimate for the current images and returns the resulting session."""
        machine = machine_of(request)
        if machine.is_loading:
            raise HTTPException(status_code=409, detail="An estimate is already in progress.")
        snapshot = await machine.request_estimate()
        return snapshot.to_dict()

    @app.get("/health")
    def health_check():
        return {"status": "running"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("demolition_backend.app:app", host="0.0.0.0", port=8000, reload=True)
