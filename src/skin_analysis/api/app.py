"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from skin_analysis.api.events import PipelineEventBuffer
from skin_analysis.api.schemas import SignInRequest
from skin_analysis.app_logging import configure_logging
from skin_analysis.containers import AppContainer
from skin_analysis.domain.errors import (
    AlreadyRunning,
    InvalidTransition,
    NoImageSelected,
    Unauthenticated,
)
from skin_analysis.domain.media import MediaSource
from skin_analysis.domain.pipeline import IN_FLIGHT_STAGES
from skin_analysis.services.credentials import Credential


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    events = PipelineEventBuffer()
    container.pipeline_controller.subscribe(events.record)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.state.events = events

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/auth/sign-in")
    async def sign_in(payload: SignInRequest, request: Request) -> dict[str, str]:
        """Establish the session used by pipeline runs."""
        state_container: AppContainer = request.app.state.container
        try:
            principal_id = state_container.credential_provider.sign_in(
                payload.email, payload.password
            )
        except Unauthenticated as exc:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
            ) from exc
        return {"principal_id": principal_id}

    @app.get("/pipeline/state")
    async def pipeline_state(request: Request) -> dict[str, object]:
        """Return the current pipeline state."""
        state_container: AppContainer = request.app.state.container
        return state_container.pipeline_controller.state.to_dict()

    @app.post("/pipeline/capture/{source}")
    async def capture(source: MediaSource, request: Request) -> dict[str, object]:
        """Hand a captured image to the picker; an empty body cancels."""
        state_container: AppContainer = request.app.state.container
        controller = state_container.pipeline_controller
        if controller.state.stage in IN_FLIGHT_STAGES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail="Pipeline is busy"
            )
        state_container.media_picker.stage(source, await request.body())
        if source is MediaSource.CAMERA:
            state = await controller.capture_from_device()
        else:
            state = await controller.pick_from_library()
        return state.to_dict()

    @app.post("/pipeline/save")
    async def save(request: Request) -> dict[str, object]:
        """Run the pipeline for the captured image until it finishes."""
        state_container: AppContainer = request.app.state.container
        controller = state_container.pipeline_controller
        try:
            # The run continues even if the client goes away.
            state = await asyncio.shield(controller.save())
        except AlreadyRunning as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except NoImageSelected as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except InvalidTransition as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        logger.info("Pipeline run finished: stage=%s", state.stage.value)
        return state.to_dict()

    @app.post("/pipeline/dismiss")
    async def dismiss(request: Request) -> dict[str, object]:
        """Dismiss a failed run."""
        state_container: AppContainer = request.app.state.container
        try:
            state = state_container.pipeline_controller.dismiss()
        except InvalidTransition as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        return state.to_dict()

    @app.get("/pipeline/events")
    async def pipeline_events(request: Request) -> dict[str, object]:
        """Return and clear buffered pipeline events."""
        buffer: PipelineEventBuffer = request.app.state.events
        return {"events": [event.to_dict() for event in buffer.drain()]}

    @app.get("/history/images")
    async def image_history(request: Request, limit: int = 20) -> dict[str, object]:
        """Return the signed-in user's uploaded images."""
        state_container: AppContainer = request.app.state.container
        credential = await _require_credential(state_container)
        entries = state_container.upload_service.list_images(
            credential.principal_id, limit
        )
        return {
            "images": [
                {"image_url": entry.image_url, "timestamp": entry.timestamp}
                for entry in entries
            ]
        }

    @app.get("/history/analyses")
    async def analysis_history(request: Request, limit: int = 20) -> dict[str, object]:
        """Return the signed-in user's analysis history."""
        state_container: AppContainer = request.app.state.container
        credential = await _require_credential(state_container)
        records = state_container.persistence_service.list_analyses(
            credential.principal_id, limit
        )
        return {
            "analyses": [
                {"result": record.result, "timestamp": record.recorded_at}
                for record in records
            ]
        }

    return app


async def _require_credential(container: AppContainer) -> Credential:
    """Return the current credential or fail with 401."""
    try:
        return await container.credential_provider.get_credential()
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc
