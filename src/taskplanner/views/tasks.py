from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from fastapi import APIRouter, Request
from starlette.datastructures import FormData
from starlette.responses import RedirectResponse

from ..core.config import Settings
from ..core.session import add_flash_message
from ..core.templates import is_htmx_request, partial_response, template_response
from ..deps import AuthenticatedSessionUserDependency, DatabaseSessionDependency, SettingsDependency
from ..errors import ApplicationError
from ..models import RecurrenceFrequency, ReminderType, Subtask, TaskPriority, TaskStatus
from ..repositories import TaskSearchCriteria
from ..services import (
    DependencyService,
    ProjectService,
    RecurrenceService,
    ReminderService,
    SubtaskService,
    TagService,
    TaskService,
    describe_filters,
)
from ..services.recurrence import WEEKDAY_NAMES, to_read
from .forms import (
    clean_text,
    csrf_rejected,
    form_ids,
    parse_local_datetime,
    parse_optional_int,
    redirect_back,
    redirect_to,
)

router = APIRouter(tags=["tasks"])


def _flatten_subtasks(subtasks: Sequence[Subtask]) -> list[tuple[Subtask, int]]:
    """Depth-first order of the subtask tree with each node's depth."""
    children: dict[int | None, list[Subtask]] = defaultdict(list)
    for item in subtasks:
        children[item.parent_id].append(item)
    ordered: list[tuple[Subtask, int]] = []
    stack = [(item, 0) for item in reversed(children[None])]
    while stack:
        node, depth = stack.pop()
        ordered.append((node, depth))
        stack.extend((child, depth + 1) for child in reversed(children[node.id]))
    return ordered


async def _form_choices(session, owner_id: int) -> dict[str, object]:
    return {
        "projects": await ProjectService(session).list_projects(owner_id),
        "tags": await TagService(session).list_tags(owner_id),
        "priorities": list(TaskPriority),
        "statuses": list(TaskStatus),
    }


def _task_fields(form: FormData, settings: Settings) -> dict[str, object]:
    fields: dict[str, object] = {
        "title": clean_text(form.get("title")),
        "description": clean_text(form.get("description")) or None,
        "project_id": parse_optional_int(form.get("project_id"), field="project_id"),
        "due_date": parse_local_datetime(form.get("due_date"), settings.tzinfo, field="due_date"),
        "start_date": parse_local_datetime(form.get("start_date"), settings.tzinfo, field="start_date"),
    }
    if priority := clean_text(form.get("priority")):
        fields["priority"] = TaskPriority(priority)
    if status_value := clean_text(form.get("status")):
        fields["status"] = TaskStatus(status_value)
    return fields


@router.get("", name="tasks:inbox")
async def inbox(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> object:
    """Open tasks in manual order, with the quick-add form."""

    service = TaskService(session)
    return template_response(
        request,
        "tasks/inbox.html",
        {
            "title": "Inbox",
            "tasks": await service.inbox(current_user.id),
            **await _form_choices(session, current_user.id),
        },
    )


@router.get("/today", name="tasks:today")
async def today(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    agenda = await TaskService(session, settings).today_agenda(current_user.id)
    return template_response(request, "tasks/today.html", {"title": "Today", "agenda": agenda})


@router.get("/upcoming", name="tasks:upcoming")
async def upcoming(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    agenda = await TaskService(session, settings).upcoming_agenda(current_user.id)
    return template_response(request, "tasks/upcoming.html", {"title": "Upcoming", "agenda": agenda})


@router.get("/completed", name="tasks:completed")
async def completed(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    groups = await TaskService(session, settings).completed_groups(current_user.id)
    return template_response(request, "tasks/completed.html", {"title": "Completed", "groups": groups})


@router.get("/search", name="tasks:search")
async def search(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Filterable task search; the query string is the saved-search payload."""

    params = request.query_params
    criteria = TaskSearchCriteria(query=clean_text(params.get("q")) or None)
    errors: dict[str, str] = {}
    try:
        criteria.project_id = parse_optional_int(params.get("project_id"), field="project_id")
        criteria.tag_ids = [int(value) for value in params.getlist("tag_ids") if value.strip()]
        criteria.match_all_tags = params.get("match_all_tags") == "on"
        criteria.date_from = parse_local_datetime(params.get("date_from"), settings.tzinfo, field="date_from")
        criteria.date_to = parse_local_datetime(params.get("date_to"), settings.tzinfo, field="date_to")
        if status_value := clean_text(params.get("status")):
            criteria.status = TaskStatus(status_value)
        if priority := clean_text(params.get("priority")):
            criteria.priority = TaskPriority(priority)
        if (sort_by := clean_text(params.get("sort_by"))) in {"created_at", "due_date", "title", "priority"}:
            criteria.sort_by = sort_by
        if (sort_order := clean_text(params.get("sort_order"))) in {"asc", "desc"}:
            criteria.sort_order = sort_order
    except ApplicationError as exc:
        errors["filters"] = exc.message
    except ValueError:
        errors["filters"] = "Invalid filter value."

    service = TaskService(session, settings)
    tasks = [] if errors else await service.to_read(await service.search_tasks(current_user.id, criteria))
    context = {
        "title": "Search",
        "criteria": criteria,
        "summary": describe_filters(criteria),
        "results": tasks,
        "errors": errors,
        **await _form_choices(session, current_user.id),
    }
    if is_htmx_request(request):
        return partial_response(request, "tasks/_search_results.html", context)
    return template_response(request, "tasks/search.html", context)


@router.post("/tasks", name="tasks:create")
async def create_task(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_back(request, "tasks:inbox")
    try:
        fields = _task_fields(form, settings)
        fields["tag_ids"] = form_ids(form, "tag_ids")
        task = await TaskService(session, settings).create_task(owner_id=current_user.id, **fields)
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
    except ValueError:
        add_flash_message(request.session, "error", "Invalid task details.")
    else:
        add_flash_message(request.session, "success", f"Added \"{task.title}\".")
    return redirect_back(request, "tasks:inbox")


@router.get("/tasks/{task_id}", name="tasks:detail")
async def task_detail(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Everything about one task: subtasks, dependencies, tags, reminders, recurrence."""

    owner_id = current_user.id
    service = TaskService(session, settings)
    dependencies = DependencyService(session)
    task = await service.require_task(task_id, owner_id)
    rule = await RecurrenceService(session).get_for_task(task_id, owner_id)
    candidates = [
        item for item in await service.list_tasks_for_owner(owner_id) if item.id != task_id
    ]
    return template_response(
        request,
        "tasks/detail.html",
        {
            "title": task.title,
            "task": await service.to_read_one(task),
            "subtasks": _flatten_subtasks(await SubtaskService(session, settings).list_for_task(task_id, owner_id)),
            "dependencies": await dependencies.list_dependencies(task_id, owner_id=owner_id),
            "dependents": await dependencies.list_dependents(task_id, owner_id=owner_id),
            "gate": await dependencies.can_complete(task_id, owner_id=owner_id),
            "candidates": candidates,
            "reminders": await ReminderService(session, settings).list_for_task(task_id, owner_id),
            "reminder_types": list(ReminderType),
            "recurrence": to_read(rule) if rule is not None else None,
            "frequencies": list(RecurrenceFrequency),
            "weekday_names": WEEKDAY_NAMES,
            **await _form_choices(session, owner_id),
        },
    )


@router.post("/tasks/{task_id}/edit", name="tasks:update")
async def update_task(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:detail", task_id=task_id)
    try:
        fields = _task_fields(form, settings)
        await TaskService(session, settings).update_task(
            task_id, current_user.id, tag_ids=form_ids(form, "tag_ids"), **fields
        )
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
    except ValueError:
        add_flash_message(request.session, "error", "Invalid task details.")
    else:
        add_flash_message(request.session, "success", "Task updated.")
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/tasks/{task_id}/toggle", name="tasks:toggle")
async def toggle_task(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Toggle completion; HTMX callers get the re-rendered row."""

    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_back(request, "tasks:inbox")
    service = TaskService(session, settings)
    try:
        task = await service.toggle_task(task_id, current_user.id)
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
        return redirect_back(request, "tasks:inbox")

    if is_htmx_request(request):
        return partial_response(request, "tasks/_task_item.html", {"task": await service.to_read_one(task)})
    message = "Task completed." if task.status == TaskStatus.DONE else "Task reopened."
    add_flash_message(request.session, "success", message)
    return redirect_back(request, "tasks:inbox")


@router.post("/tasks/{task_id}/delete", name="tasks:delete")
async def delete_task(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:detail", task_id=task_id)
    await TaskService(session).delete_task(task_id, current_user.id)
    add_flash_message(request.session, "success", "Task deleted.")
    return redirect_to(request, "tasks:inbox")


@router.post("/tasks/{task_id}/subtasks", name="tasks:subtask_create")
async def create_subtask(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:detail", task_id=task_id)
    try:
        await SubtaskService(session).create_subtask(
            task_id,
            current_user.id,
            title=clean_text(form.get("title")),
            parent_id=parse_optional_int(form.get("parent_id"), field="parent_id"),
        )
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/subtasks/{subtask_id}/toggle", name="tasks:subtask_toggle")
async def toggle_subtask(
    subtask_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    service = SubtaskService(session)
    try:
        subtask = await service.require_subtask(subtask_id, current_user.id)
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
        return redirect_back(request, "tasks:inbox")
    task_id = subtask.task_id
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:detail", task_id=task_id)
    outcome = await service.toggle_subtask(subtask_id, current_user.id)
    if outcome.completed_task is not None:
        add_flash_message(request.session, "success", "All subtasks done. Task completed!")
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/subtasks/{subtask_id}/delete", name="tasks:subtask_delete")
async def delete_subtask(
    subtask_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    service = SubtaskService(session)
    try:
        subtask = await service.require_subtask(subtask_id, current_user.id)
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
        return redirect_back(request, "tasks:inbox")
    task_id = subtask.task_id
    if not csrf_rejected(request, form):
        await service.delete_subtask(subtask_id, current_user.id)
        add_flash_message(request.session, "success", "Subtask deleted.")
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/tasks/{task_id}/dependencies", name="tasks:dependency_create")
async def add_dependency(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:detail", task_id=task_id)
    try:
        depends_on = parse_optional_int(form.get("depends_on_task_id"), field="depends_on_task_id")
        if depends_on is None:
            add_flash_message(request.session, "error", "Choose a task to depend on.")
        else:
            await DependencyService(session).add_dependency(task_id, depends_on, owner_id=current_user.id)
            add_flash_message(request.session, "success", "Dependency added.")
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/dependencies/{dependency_id}/delete", name="tasks:dependency_delete")
async def remove_dependency(
    dependency_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        try:
            await DependencyService(session).remove_dependency(dependency_id, owner_id=current_user.id)
        except ApplicationError as exc:
            add_flash_message(request.session, "error", exc.message)
        else:
            add_flash_message(request.session, "success", "Dependency removed.")
    return redirect_back(request, "tasks:inbox")


@router.post("/tasks/{task_id}/reminders", name="tasks:reminder_create")
async def create_reminder(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:detail", task_id=task_id)
    try:
        when = parse_local_datetime(form.get("time"), settings.tzinfo, field="time")
        if when is None:
            add_flash_message(request.session, "error", "Reminder time is required.")
        else:
            await ReminderService(session, settings).create_reminder(
                task_id,
                current_user.id,
                type=ReminderType(clean_text(form.get("type")) or ReminderType.PUSH.value),
                time=when,
            )
            add_flash_message(request.session, "success", "Reminder scheduled.")
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
    except ValueError:
        add_flash_message(request.session, "error", "Unknown reminder type.")
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/reminders/{reminder_id}/delete", name="tasks:reminder_delete")
async def delete_reminder(
    reminder_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    service = ReminderService(session)
    try:
        reminder = await service.require_reminder(reminder_id, current_user.id)
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
        return redirect_back(request, "tasks:inbox")
    task_id = reminder.task_id
    if not csrf_rejected(request, form):
        await service.delete_reminder(reminder_id, current_user.id)
        add_flash_message(request.session, "success", "Reminder removed.")
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/tasks/{task_id}/recurrence", name="tasks:recurrence_save")
async def save_recurrence(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> RedirectResponse:
    """Create the rule, or replace the fields of the existing one."""

    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:detail", task_id=task_id)
    service = RecurrenceService(session)
    try:
        days = sorted({day for day in form_ids(form, "days_of_week") if 0 <= day <= 6})
        fields = {
            "frequency": RecurrenceFrequency(clean_text(form.get("frequency"))),
            "interval": parse_optional_int(form.get("interval"), field="interval") or 1,
            "days_of_week": days or None,
            "end_date": parse_local_datetime(form.get("end_date"), settings.tzinfo, field="end_date"),
        }
        if await service.get_for_task(task_id, current_user.id) is None:
            await service.create(task_id, current_user.id, **fields)
        else:
            await service.update(task_id, current_user.id, **fields)
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
    except ValueError:
        add_flash_message(request.session, "error", "Unknown repeat frequency.")
    else:
        add_flash_message(request.session, "success", "Repeat rule saved.")
    return redirect_to(request, "tasks:detail", task_id=task_id)


@router.post("/tasks/{task_id}/recurrence/delete", name="tasks:recurrence_delete")
async def delete_recurrence(
    task_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        try:
            await RecurrenceService(session).delete(task_id, current_user.id)
        except ApplicationError as exc:
            add_flash_message(request.session, "error", exc.message)
    return redirect_to(request, "tasks:detail", task_id=task_id)


__all__ = ["router"]
