# kickstart/api/routes/my_study_sessions.py
# Routes "mes sessions d'étude" : démarrer, consulter, faire avancer et abandonner une session.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Path, Response, status

from kickstart.api.deps import get_study_session_service
from kickstart.api.dto.study_session import CompleteIn, SelectAnswerIn
from kickstart.core.bson_utils import PyObjectId
from kickstart.core.security import CurrentUserId, get_current_user
from kickstart.models.session import SessionRunView
from kickstart.services.study_session.study_session_service import StudySessionService

router = APIRouter(prefix="/my", tags=["my-study-sessions"], dependencies=[Depends(get_current_user)])

SessionService = Annotated[StudySessionService, Depends(get_study_session_service)]
RunId = Annotated[str, Path(description="Identifiant de la session.")]


@router.post(
    "/tasks/{task_id}/sessions",
    response_model=SessionRunView,
    status_code=status.HTTP_201_CREATED,
    summary="Démarrer une session d'étude",
    description="Démarre une session sur la tâche : échauffement (quiz), curiosité, puis étude.",
)
async def start_session_route(
    user_id: CurrentUserId,
    service: SessionService,
    task_id: PyObjectId = Path(..., description="Identifiant de la tâche."),
) -> SessionRunView:
    engine = await service.start_session(user_id, task_id)
    return engine.view()


@router.get("/sessions/{run_id}", response_model=SessionRunView, summary="État d'une session")
async def get_session_route(user_id: CurrentUserId, service: SessionService, run_id: RunId) -> SessionRunView:
    engine = await service.get_session(user_id, run_id)
    return engine.view()


@router.post("/sessions/{run_id}/select", response_model=SessionRunView, summary="Choisir une réponse")
async def select_answer_route(
    user_id: CurrentUserId,
    service: SessionService,
    run_id: RunId,
    payload: SelectAnswerIn = Body(...),
) -> SessionRunView:
    engine = await service.get_session(user_id, run_id)
    return await engine.select_answer(payload.answer_index)


@router.post("/sessions/{run_id}/submit", response_model=SessionRunView, summary="Valider la réponse choisie")
async def submit_route(user_id: CurrentUserId, service: SessionService, run_id: RunId) -> SessionRunView:
    engine = await service.get_session(user_id, run_id)
    return await engine.submit()


@router.post("/sessions/{run_id}/advance", response_model=SessionRunView, summary="Question suivante")
async def advance_route(user_id: CurrentUserId, service: SessionService, run_id: RunId) -> SessionRunView:
    engine = await service.get_session(user_id, run_id)
    return await engine.advance()


@router.post("/sessions/{run_id}/proceed", response_model=SessionRunView, summary="Passer à l'étude")
async def proceed_route(user_id: CurrentUserId, service: SessionService, run_id: RunId) -> SessionRunView:
    engine = await service.get_session(user_id, run_id)
    return await engine.proceed()


@router.post(
    "/sessions/{run_id}/complete",
    response_model=SessionRunView,
    summary="Terminer la session",
    description="Enregistre les sujets terminés, met à jour l'avancement et replanifie la tâche.",
)
async def complete_route(
    user_id: CurrentUserId,
    service: SessionService,
    run_id: RunId,
    payload: CompleteIn = Body(...),
) -> SessionRunView:
    """Terminer la session.

    Raises:
        InvalidTransition: 409 hors phase d'étude.
        PersistenceError: 503, la session reste en phase d'étude.
        SessionNotFound: 404, session inconnue (une session terminée est retirée du registre).
    """
    return await service.complete(user_id, run_id, payload.topics_completed)


@router.delete(
    "/sessions/{run_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Abandonner une session",
)
async def abandon_route(user_id: CurrentUserId, service: SessionService, run_id: RunId) -> Response:
    await service.abandon(user_id, run_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
