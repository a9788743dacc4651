"""
api/routes/v1/records.py -- User-Extension Records endpoints.

Routes:
  GET    /api/v1/me                  -- null when signed out, else {user, preferences}
  PATCH  /api/v1/me/preferences      -- partial upsert (requires auth)
  GET    /api/v1/tasks               -- caller's tasks, [] when signed out
  POST   /api/v1/tasks               -- create (requires auth)
  POST   /api/v1/tasks/{id}/toggle   -- flip is_completed (requires auth, owner only)
  DELETE /api/v1/tasks/{id}          -- delete (requires auth, owner only)

Gating lives in records/handlers.py, not here: routes resolve the optional
identity and let the handler decide between "empty result" and "reject".
NotAuthenticatedError / NotFoundError / ValidationError raised by handlers
are turned into the error envelope by the exception handler in api/main.py.
"""

from typing import Optional

from fastapi import APIRouter, Request, Response

from api.models import MeResponse, PreferencesPatch, PreferencesResponse, TaskCreate, TaskResponse, UserInfo
from auth.dependencies import try_get_current_identity
from records import handlers
from records.store import RecordStore

router = APIRouter()


def _store(request: Request) -> RecordStore:
    return request.app.state.records


@router.get("/me", response_model=Optional[MeResponse])
def get_me(request: Request) -> Optional[MeResponse]:
    identity = try_get_current_identity(request)
    result = handlers.get_current_user_preferences(_store(request), identity)
    if result is None:
        return None
    prefs = result["preferences"]
    return MeResponse(
        user=UserInfo(**result["user"]),
        preferences=PreferencesResponse(**prefs) if prefs is not None else None,
    )


@router.patch("/me/preferences", response_model=PreferencesResponse)
def patch_preferences(request: Request, body: PreferencesPatch) -> PreferencesResponse:
    identity = try_get_current_identity(request)
    fields = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    prefs = handlers.update_user_preferences(_store(request), identity, **fields)
    return PreferencesResponse.from_domain(prefs)


@router.get("/tasks", response_model=list[TaskResponse])
def list_tasks(request: Request) -> list[TaskResponse]:
    identity = try_get_current_identity(request)
    return [TaskResponse.from_domain(t) for t in handlers.get_user_tasks(_store(request), identity)]


@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(request: Request, body: TaskCreate) -> TaskResponse:
    identity = try_get_current_identity(request)
    task = handlers.create_task(_store(request), identity, body.text, is_completed=body.is_completed)
    return TaskResponse.from_domain(task)


@router.post("/tasks/{task_id}/toggle", response_model=TaskResponse)
def toggle_task(request: Request, task_id: int) -> TaskResponse:
    identity = try_get_current_identity(request)
    return TaskResponse.from_domain(handlers.toggle_task(_store(request), identity, task_id))


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(request: Request, task_id: int) -> Response:
    identity = try_get_current_identity(request)
    handlers.delete_task(_store(request), identity, task_id)
    return Response(status_code=204)
