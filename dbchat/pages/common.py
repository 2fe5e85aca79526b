import logging
from typing import Optional

from dbchat.core.models import Permission, Project
from dbchat.ui.router import AppContext, Redirect

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/dashboard"


def load_project(ctx: AppContext, project_id: int) -> Project:
    """Fetch the project a screen is about, or leave for the dashboard."""
    with ctx.busy("Loading project..."):
        response = ctx.api.get_project(project_id)
    if not response.success or response.data is None:
        ctx.toast.error(response.error or "Failed to load project")
        raise Redirect(DASHBOARD_PATH)
    return response.data


def load_permission(ctx: AppContext, project: Project) -> Optional[Permission]:
    """Dedicated permissions endpoint first, then whatever came with the project."""
    response = ctx.api.get_project_permissions(project.id)
    if response.success and response.data is not None:
        return response.data
    logger.info(f"Permissions endpoint unavailable for project {project.id}: {response.error}")
    return project.permission


def connect(ctx: AppContext, project_id: int, quiet: bool = False) -> bool:
    with ctx.busy("Connecting to database..."):
        response = ctx.api.connect_database(project_id)
    if response.success:
        ctx.session.set_connection_state(project_id, True)
        if not quiet:
            ctx.toast.success("Connected to database")
        return True

    ctx.session.set_connection_state(project_id, False)
    if not quiet:
        ctx.toast.error(response.error or "Failed to connect to database")
    return False


def disconnect(ctx: AppContext, project_id: int) -> bool:
    """Returns the connection state after the call."""
    response = ctx.api.disconnect_database(project_id)
    if response.success:
        ctx.session.set_connection_state(project_id, False)
        ctx.toast.success("Disconnected from database")
        return False
    ctx.toast.error(response.error or "Failed to disconnect from database")
    return True


def logout(ctx: AppContext) -> str:
    ctx.session.logout()
    ctx.toast.success("Logged out successfully.")
    return "/login"
