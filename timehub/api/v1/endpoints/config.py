from fastapi import APIRouter

from timehub.config import settings
from timehub.schemas.summary import JiraConfig

router = APIRouter()


@router.get("/jira", response_model=JiraConfig)
def jira_config():
    """Jira base URL for building issue links from Tempo project labels."""
    return JiraConfig(base_url=settings.jira_base_url, configured=bool(settings.jira_base_url))
