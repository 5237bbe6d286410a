# LangGraph workflows
from app.workflows.onboarding_agent import run_onboarding

__all__ = ["run_onboarding"]
