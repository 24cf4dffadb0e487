"""
Task API endpoints.

Exposes owner-scoped CRUD for tasks plus a public health check.  Every task
endpoint is protected by :func:`~tracker_app.auth.require_auth`, and every
query is built from :func:`_owned_tasks`, which filters by the authenticated
user's id.  A task that exists but belongs to someone else is reported
exactly like a task that does not exist.

Endpoints (mounted under ``/api``):
    GET    /health           - Service health check (public)
    GET    /tasks            - List the user's tasks (filters, sorting)
    GET    /tasks/stats      - Completed/pending counts for the user
    GET    /tasks/<id>       - Retrieve a single task
    POST   /tasks            - Create a task
    PUT    /tasks/<id>       - Partial update of a task
    DELETE /tasks/<id>       - Delete a task
"""

from __future__ import annotations

import logging
import os

from flask import Blueprint, Response, g, jsonify, request
from sqlalchemy import Select, case, select

from .. import db
from ..auth import require_auth
from ..errors import NotFound, ValidationFailed
from ..models import Task, TaskPriority
from ..schemas import TaskCreate, TaskUpdate, normalize_completed, parse_body
from ..stats import summarize

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks_api", __name__)

# Largest value a SQLite INTEGER column can hold
MAX_TASK_ID = 2**63 - 1

SORTABLE_FIELDS = {
    "created_at": Task.created_at,
    "due_date": Task.due_date,
    # Rank rather than alphabetical order: low < medium < high
    "priority": case({"low": 0, "medium": 1, "high": 2}, value=Task.priority, else_=1),
    "title": Task.title,
}


# =====================================================================
# Helper Functions
# =====================================================================


def _owned_tasks() -> Select:
    """Base statement restricted to the authenticated user's tasks."""
    return select(Task).where(Task.owner == g.current_user.id)


def _get_owned_task_or_404(task_id: int) -> Task:
    if task_id > MAX_TASK_ID:
        raise NotFound("Task not found.")
    task = db.session.scalar(_owned_tasks().where(Task.id == task_id))
    if task is None:
        logger.warning("Task %s not found for user id=%s", task_id, g.current_user.id)
        raise NotFound("Task not found.")
    return task


def _apply_list_filters(stmt: Select) -> Select:
    """
    Apply the optional ``completed``/``priority`` filters and sort order.

    Raises:
        ValidationFailed: For an unknown filter value or sort field.
    """
    completed = request.args.get("completed")
    # Empty query values are treated as absent
    if completed:
        try:
            stmt = stmt.where(Task.completed == normalize_completed(completed))
        except ValueError as exc:
            raise ValidationFailed("completed must be true or false.") from exc

    priority = request.args.get("priority")
    if priority:
        valid_priorities = [p.value for p in TaskPriority]
        if priority not in valid_priorities:
            raise ValidationFailed(f"Invalid priority. Must be one of: {valid_priorities}")
        stmt = stmt.where(Task.priority == priority)

    sort_field = request.args.get("sort", "created_at")
    sort_order = request.args.get("order", "desc")
    column = SORTABLE_FIELDS.get(sort_field)
    if column is None:
        raise ValidationFailed(f"Invalid sort field. Must be one of: {sorted(SORTABLE_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise ValidationFailed("order must be 'asc' or 'desc'.")

    # Tie-break on id so rows created within the same instant keep a stable order
    if sort_order == "desc":
        return stmt.order_by(column.desc(), Task.id.desc())
    return stmt.order_by(column.asc(), Task.id.asc())


# =====================================================================
# API Endpoints
# =====================================================================


@tasks_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Public liveness probe."""
    return (
        jsonify(
            {
                "success": True,
                "status": "healthy",
                "environment": os.getenv("ENVIRONMENT", "unknown"),
            }
        ),
        200,
    )


@tasks_bp.route("/tasks", methods=["GET"])
@require_auth
def list_tasks() -> tuple[Response, int]:
    """
    List the authenticated user's tasks, newest first by default.

    Query Parameters:
        completed: ``true``/``false`` (also ``1/0``, ``yes/no``)
        priority: ``low``, ``medium`` or ``high``
        sort: ``created_at``, ``due_date``, ``priority`` or ``title``
        order: ``asc`` or ``desc``
    """
    logger.info("GET /api/tasks - Fetching tasks for user id=%s", g.current_user.id)

    stmt = _apply_list_filters(_owned_tasks())
    tasks = db.session.scalars(stmt).all()
    return (
        jsonify({"success": True, "tasks": [task.to_dict() for task in tasks], "count": len(tasks)}),
        200,
    )


@tasks_bp.route("/tasks/stats", methods=["GET"])
@require_auth
def task_stats() -> tuple[Response, int]:
    tasks = db.session.scalars(_owned_tasks()).all()
    return jsonify({"success": True, "stats": summarize(tasks).to_dict()}), 200


@tasks_bp.route("/tasks/<int:task_id>", methods=["GET"])
@require_auth
def get_task(task_id: int) -> tuple[Response, int]:
    task = _get_owned_task_or_404(task_id)
    return jsonify({"success": True, "task": task.to_dict()}), 200


@tasks_bp.route("/tasks", methods=["POST"])
@require_auth
def create_task() -> tuple[Response, int]:
    """
    Create a task owned by the authenticated user.

    The owner always comes from the verified identity; ``owner``, ``id`` and
    timestamp fields in the body are ignored.
    """
    payload = parse_body(TaskCreate)

    task = Task(
        owner=g.current_user.id,
        title=payload.title,
        description=payload.description,
        priority=payload.priority.value,
        due_date=payload.due_date,
        completed=payload.completed,
    )
    db.session.add(task)
    db.session.commit()

    logger.info("Created task id=%s for user id=%s", task.id, g.current_user.id)
    return jsonify({"success": True, "task": task.to_dict()}), 201


@tasks_bp.route("/tasks/<int:task_id>", methods=["PUT"])
@require_auth
def update_task(task_id: int) -> tuple[Response, int]:
    """
    Update the fields present in the body.

    Returns:
        200 with the updated ``task``.
        400 on invalid fields or an attempt to change ``owner``.
        404 if the task does not exist or belongs to another user.
    """
    task = _get_owned_task_or_404(task_id)
    payload = parse_body(TaskUpdate)
    fields = payload.model_fields_set

    if "owner" in fields and payload.owner != task.owner:
        raise ValidationFailed("Task owner cannot be changed.")

    if "title" in fields:
        task.title = payload.title
    if "description" in fields:
        task.description = payload.description
    if "priority" in fields:
        task.priority = payload.priority.value
    if "due_date" in fields:
        task.due_date = payload.due_date
    if "completed" in fields:
        task.completed = payload.completed

    db.session.commit()

    logger.info("Updated task id=%s", task_id)
    return jsonify({"success": True, "task": task.to_dict()}), 200


@tasks_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id: int) -> tuple[Response, int]:
    task = _get_owned_task_or_404(task_id)
    db.session.delete(task)
    db.session.commit()

    logger.info("Deleted task id=%s", task_id)
    return jsonify({"success": True, "message": "Task deleted."}), 200
