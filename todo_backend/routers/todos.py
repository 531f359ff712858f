from fastapi import APIRouter, Depends

from todo_backend import tasks
from todo_backend.database import SessionDep
from todo_backend.dependencies import ContextDep, simulate_latency
from todo_backend.models import MessageResponse, TodoCreate, TodoListResponse, TodoRead, TodoResponse, TodoUpdate

router = APIRouter(prefix="/todos", tags=["todos"], dependencies=[Depends(simulate_latency)])


@router.get("/", response_model=TodoListResponse)
def list_todos(session: SessionDep, ctx: ContextDep):
    """List all todos for the current user."""
    todos = tasks.list_todos(session, ctx)
    return TodoListResponse(todos=[TodoRead.from_todo(todo) for todo in todos])


@router.get("/{todo_id}", response_model=TodoResponse)
def get_todo(todo_id: str, session: SessionDep, ctx: ContextDep):
    """Get a single todo by ID."""
    return TodoResponse(todo=TodoRead.from_todo(tasks.get_todo(session, ctx, todo_id)))


@router.post("/", response_model=TodoResponse, status_code=201)
def create_todo(todo_create: TodoCreate, session: SessionDep, ctx: ContextDep):
    """Create a new todo for the current user."""
    todo = tasks.create_todo(
        session,
        ctx,
        title=todo_create.title,
        description=todo_create.description,
        due_date=todo_create.due_date,
    )
    return TodoResponse(todo=TodoRead.from_todo(todo))


@router.patch("/{todo_id}", response_model=TodoResponse)
def update_todo(todo_id: str, todo_update: TodoUpdate, session: SessionDep, ctx: ContextDep):
    """Partially update a todo (only provided fields)."""
    todo = tasks.update_todo(session, ctx, todo_id, todo_update.model_dump(exclude_unset=True))
    return TodoResponse(todo=TodoRead.from_todo(todo))


@router.delete("/{todo_id}", response_model=MessageResponse)
def delete_todo(todo_id: str, session: SessionDep, ctx: ContextDep):
    """Delete a todo."""
    tasks.delete_todo(session, ctx, todo_id)
    return MessageResponse(message="Todo deleted successfully")


@router.post("/{todo_id}/toggle", response_model=TodoResponse)
def toggle_todo(todo_id: str, session: SessionDep, ctx: ContextDep):
    """Flip the completed flag of a todo."""
    return TodoResponse(todo=TodoRead.from_todo(tasks.toggle_todo(session, ctx, todo_id)))
