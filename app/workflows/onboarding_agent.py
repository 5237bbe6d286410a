"""Onboarding flow: determine the user's next step (pick a charity, then play)."""

from typing import TypedDict

from beanie import PydanticObjectId
from langgraph.graph import END, START, StateGraph


class OnboardingState(TypedDict):
    user_id: str
    has_charity: bool
    credits: int
    next_step: str
    completed: bool


async def _check_onboarding(state: OnboardingState) -> dict:
    from app.models.charity import Charity
    from app.models.user import User

    user = await User.get(PydanticObjectId(state["user_id"]))
    charity = None
    if user and user.selected_charity_id:
        charity = await Charity.get(user.selected_charity_id)
    has_charity = charity is not None and charity.approved
    return {
        "has_charity": has_charity,
        "credits": user.credits if user else 0,
        "next_step": "play" if has_charity else "select_charity",
        "completed": has_charity,
    }


def build_onboarding_graph():
    builder = StateGraph(OnboardingState)
    builder.add_node("check", _check_onboarding)
    builder.add_edge(START, "check")
    builder.add_edge("check", END)
    return builder.compile()


async def run_onboarding(user_id: str) -> dict:
    """Run onboarding graph; return state with next_step and flags."""
    graph = build_onboarding_graph()
    initial: OnboardingState = {
        "user_id": user_id,
        "has_charity": False,
        "credits": 0,
        "next_step": "",
        "completed": False,
    }
    result = await graph.ainvoke(initial)
    return dict(result)
