# kickstart/api/routes/__init__.py

from .health import router as health_router
from .my_study_sessions import router as my_study_sessions_router
from .my_tasks import router as my_tasks_router

routers = [
    health_router,
    my_tasks_router,
    my_study_sessions_router,
]
