"""HTTP routers for the InternOS API."""

from . import activity, auth, comments, dashboard, messages, profile, tasks, users

routers = [
    auth.router,
    tasks.router,
    comments.router,
    activity.router,
    messages.router,
    dashboard.router,
    users.router,
    profile.router,
]

__all__ = ["routers"]
