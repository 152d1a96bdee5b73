"""
Web interface
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from fastapi import FastAPI, Request, Form
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from lynk.api.auth_client import AuthClient
from lynk.api.task_store_client import TaskStoreClient
from lynk.models.command import TaskForm, CompletionChange, MoveCommand
from lynk.models.response import ActionResponse
from lynk.models.session import AuthState
from lynk.services.session_cache import SessionCacheService
from lynk.services.session_store import SessionStore
from lynk.services.task_board import TaskBoard
from lynk.config.constants import SIGN_IN_SUCCESS_MESSAGE, SIGN_UP_CONFIRM_MESSAGE
from lynk.utils.date_utils import format_created_date
from lynk.utils.error_handler import (
    LynkError,
    AuthError,
    ValidationError,
    NotAuthenticatedError,
    TaskNotFoundError,
    format_error_message,
    handle_error,
)
from lynk.utils.logger import logger

templates_dir = Path(__file__).parent / "templates"
static_dir = Path(__file__).parent / "static"
templates = Jinja2Templates(directory=str(templates_dir))
templates.env.filters["created_date"] = format_created_date

SIGN_IN = "signIn"
SIGN_UP = "signUp"


class LynkApp:
    """Application wiring: one session store shared by every view"""

    def __init__(
        self,
        auth_client: Optional[AuthClient] = None,
        store_client: Optional[TaskStoreClient] = None,
        session_cache: Optional[SessionCacheService] = None,
    ):
        self.auth_client = auth_client or AuthClient()
        self.store_client = store_client or TaskStoreClient()
        self.sessions = SessionStore(self.auth_client, session_cache)
        self.board = TaskBoard(self.store_client, self.sessions)
        self.logger = logger

    async def initialize(self):
        """Resolve the stored session; the board loads itself on success"""
        state = await self.sessions.resolve()
        self.logger.info(f"[Startup] Session resolved: {state.value}")

    async def shutdown(self):
        self.board.close()
        await self.auth_client.close()
        await self.store_client.close()


def _error_status(error: Exception) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, (NotAuthenticatedError, AuthError)):
        return 401
    if isinstance(error, TaskNotFoundError):
        return 404
    return 502


def _task_data(task) -> dict:
    return task.model_dump()


def create_app(lynk: Optional[LynkApp] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        lynk: Application wiring (a default one talking to SUPABASE_URL is
            created when omitted)
    """
    lynk = lynk or LynkApp()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await lynk.initialize()
        except Exception as e:
            logger.error(f"[Startup] Error initializing Lynk: {e}", exc_info=True)
            raise
        yield
        await lynk.shutdown()

    app = FastAPI(title="Lynk", lifespan=lifespan)
    app.state.lynk = lynk
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    def page(request: Request, name: str, context: Optional[dict] = None, status_code: int = 200):
        context = dict(context or {})
        context["user"] = lynk.sessions.user
        context["auth_state"] = lynk.sessions.state.value
        return templates.TemplateResponse(request, name, context, status_code=status_code)

    @app.exception_handler(LynkError)
    async def lynk_error_handler(request: Request, error: LynkError):
        response = handle_error(error)
        return JSONResponse(status_code=_error_status(error), content=response.model_dump())

    # ---- pages ----

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request):
        """Landing page"""
        return page(request, "home.html")

    @app.get("/signin", response_class=HTMLResponse)
    async def signin_form(request: Request, mode: str = SIGN_IN):
        if lynk.sessions.is_authenticated:
            return RedirectResponse("/notes", status_code=303)
        return page(request, "auth.html", {"mode": SIGN_UP if mode == SIGN_UP else SIGN_IN})

    @app.post("/signin", response_class=HTMLResponse)
    async def signin_submit(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        mode: str = Form(SIGN_IN),
    ):
        mode = SIGN_UP if mode == SIGN_UP else SIGN_IN
        try:
            if mode == SIGN_UP:
                session = await lynk.sessions.sign_up(email, password)
                if session is None:
                    return page(request, "auth.html", {"mode": mode, "message": SIGN_UP_CONFIRM_MESSAGE})
            else:
                await lynk.sessions.sign_in(email, password)
        except (AuthError, ValidationError) as e:
            return page(
                request,
                "auth.html",
                {"mode": mode, "error": format_error_message(e), "email": email},
                status_code=_error_status(e),
            )

        logger.info(SIGN_IN_SUCCESS_MESSAGE)
        return RedirectResponse("/notes", status_code=303)

    @app.post("/logout")
    async def logout():
        await lynk.sessions.sign_out()
        return RedirectResponse("/", status_code=303)

    @app.get("/notes", response_class=HTMLResponse)
    async def board_page(request: Request):
        """Task board"""
        if lynk.sessions.state == AuthState.UNRESOLVED:
            return page(request, "loading.html")
        if not lynk.sessions.is_authenticated:
            return RedirectResponse("/signin", status_code=303)
        return page(request, "tasks.html", {"tasks": lynk.board.tasks})

    # ---- JSON API ----

    @app.get("/api/tasks")
    async def list_tasks():
        if not lynk.sessions.is_authenticated:
            raise NotAuthenticatedError()
        return ActionResponse(
            message=f"{len(lynk.board.tasks)} tasks",
            data=[_task_data(task) for task in lynk.board.tasks],
        )

    @app.post("/api/tasks/reload")
    async def reload_tasks():
        if not lynk.sessions.is_authenticated:
            raise NotAuthenticatedError()
        tasks = await lynk.board.load()
        return ActionResponse(message=f"{len(tasks)} tasks", data=[_task_data(task) for task in tasks])

    @app.post("/api/tasks")
    async def add_task(form: TaskForm):
        task = await lynk.board.add_task(form.title, form.description, form.checklist_items)
        return ActionResponse(message="Task added", data=_task_data(task))

    @app.post("/api/tasks/reorder")
    async def reorder_tasks(command: MoveCommand):
        result = await lynk.board.move_task(command.task_id, command.to_index)
        return ActionResponse(
            message="Task moved",
            data={
                "task_id": result.task_id,
                "new_key": result.new_key,
                "changed": {str(task_id): key for task_id, key in result.changed.items()},
            },
        )

    @app.put("/api/tasks/{task_id}")
    async def edit_task(task_id: int, form: TaskForm):
        task = await lynk.board.edit_task(task_id, form.title, form.description, form.checklist_items)
        return ActionResponse(message="Task updated", data=_task_data(task))

    @app.delete("/api/tasks/{task_id}")
    async def delete_task(task_id: int):
        await lynk.board.delete_task(task_id)
        return ActionResponse(message="Task deleted")

    @app.post("/api/tasks/{task_id}/completion")
    async def toggle_task(task_id: int, change: CompletionChange):
        task = await lynk.board.toggle_task_completion(task_id, change.completed)
        return ActionResponse(message="Task updated", data=_task_data(task))

    @app.post("/api/tasks/{task_id}/checklist/{index}")
    async def toggle_checklist_item(task_id: int, index: int, change: CompletionChange):
        task = await lynk.board.toggle_checklist_item(task_id, index, change.completed)
        return ActionResponse(message="Checklist updated", data=_task_data(task))

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "session": lynk.sessions.state.value}

    return app
