# fastapi web api for the pdf study assistant
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from . import __version__
from .config import get_settings
from .exceptions import InvalidUploadError, RoadmapInProgressError, StudyAssistantError
from .models import ROADMAP_FAILED_MESSAGE, RawFile, RoadmapResponse, TopicIndexResponse, TrackedFile
from .pdf_inspector import PDF_MIME_TYPE, inspect_pdf
from .report_generator import report_filename
from .session import StudySession

logger = logging.getLogger(__name__)


def create_app(session_factory: Optional[Callable[[], StudySession]] = None) -> FastAPI:
    """Build the API; the study session lives exactly as long as the app"""
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = session_factory() if session_factory else StudySession.from_settings(settings)
        await session.start()
        app.state.session = session
        try:
            yield
        finally:
            await session.stop()

    # initialize fastapi application
    app = FastAPI(
        title="PDF Study Assistant API",
        description="Summaries, topic index and study roadmap for PDF documents using AI",
        version=__version__,
        lifespan=lifespan,
    )

    # add cors middleware to allow cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_session(request: Request) -> StudySession:
        return request.app.state.session

    # endpoint to upload pdf files and start their analysis
    @app.post("/files", response_model=List[TrackedFile], status_code=201)
    async def upload_files(
        files: List[UploadFile] = File(...),
        wait: bool = Query(False, description="Return only after the analyses have finished"),
        session: StudySession = Depends(get_session),
    ):
        """Upload one or more PDF files"""
        payloads = []
        for upload in files:
            content = await upload.read()
            # validate every file before tracking any of them
            try:
                inspect_pdf(content, upload.filename or "", max_bytes=settings.max_upload_bytes)
            except InvalidUploadError as e:
                raise HTTPException(status_code=400, detail=str(e))
            payloads.append(
                RawFile(
                    name=upload.filename or "document.pdf",
                    content_type=upload.content_type or PDF_MIME_TYPE,
                    data=content,
                    size=len(content),
                )
            )

        created = session.files.add_files(payloads)
        logger.info(f"File(s) uploaded: {', '.join(p.name for p in payloads)}")

        if wait:
            await session.files.join(f.id for f in created)
            return [session.files.get(f.id) or f for f in created]
        return created

    @app.get("/files", response_model=List[TrackedFile])
    async def list_files(session: StudySession = Depends(get_session)):
        """List tracked files, most recent first"""
        return session.files.files

    @app.get("/files/{file_id}", response_model=TrackedFile)
    async def get_file(file_id: str, session: StudySession = Depends(get_session)):
        entry = session.files.get(file_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="File not found")
        return entry

    @app.delete("/files/{file_id}", status_code=204)
    async def remove_file(file_id: str, session: StudySession = Depends(get_session)):
        """Remove one file"""
        if not session.files.remove_file(file_id):
            raise HTTPException(status_code=404, detail="File not found")

    # destructive: needs ?confirm=true
    @app.delete("/files", status_code=204)
    async def clear_all(
        confirm: bool = Query(False, description="Must be true to erase all files and the roadmap"),
        session: StudySession = Depends(get_session),
    ):
        """Delete all saved analyses and the roadmap"""
        if not session.clear_all(lambda _prompt: confirm):
            raise HTTPException(status_code=400, detail="Confirmation required: repeat with ?confirm=true")

    @app.get("/topics", response_model=TopicIndexResponse)
    async def get_topics(session: StudySession = Depends(get_session)):
        """Cross-document topic index"""
        index = session.topic_index()
        return TopicIndexResponse(
            all_topics=index.all_topics,
            high_priority_topics=index.high_priority_topics,
            can_generate_roadmap=session.can_generate_roadmap,
        )

    @app.get("/roadmap", response_model=RoadmapResponse)
    async def get_roadmap(session: StudySession = Depends(get_session)):
        return RoadmapResponse(generated=bool(session.roadmap.steps), steps=session.roadmap.steps)

    # endpoint to (re)generate the roadmap from all completed analyses
    @app.post("/roadmap", response_model=RoadmapResponse)
    async def generate_roadmap(session: StudySession = Depends(get_session)):
        """Generate the roadmap"""
        try:
            steps = await session.generate_roadmap()
        except RoadmapInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except StudyAssistantError as e:
            logger.error(f"Error generating roadmap: {str(e)}")
            raise HTTPException(status_code=502, detail=ROADMAP_FAILED_MESSAGE)

        if steps is None:
            return RoadmapResponse(generated=False, steps=session.roadmap.steps, message="No completed analyses yet")
        return RoadmapResponse(generated=True, steps=steps)

    # download the offline html report
    @app.get("/report", response_class=HTMLResponse)
    async def download_report(session: StudySession = Depends(get_session)):
        """Download the HTML study report"""
        now = datetime.now()
        filename = report_filename(now.date())
        return HTMLResponse(
            content=session.render_report(now),
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.get("/api")
    async def api_info():
        """API information endpoint"""
        return {
            "message": "PDF Study Assistant API",
            "version": __version__,
            "endpoints": {
                "files": "/files",
                "topics": "/topics",
                "roadmap": "/roadmap",
                "report": "/report",
                "health": "/health",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "pdf-study-assistant"}

    return app


# configure logging for the server process
logging.basicConfig(level=get_settings().log_level)

app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("study_assistant.api:app", host="0.0.0.0", port=8000, reload=True)
